# /managea/services/class_helpers/file_processors.py

"""Turns an uploaded roster spreadsheet into a list of {name, room} rows."""

import io
from typing import Dict, List

import pandas as pd

from ..exceptions import ValidationError

# openpyxl reads the Office Open XML formats only; legacy .xls is not accepted.
EXCEL_EXTENSIONS = (".xlsx", ".xlsm")
EXCEL_CONTENT_TYPES = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel.sheet.macroenabled.12",
)


def is_excel_upload(filename: str = "", content_type: str = "") -> bool:
    return (content_type or "").lower() in EXCEL_CONTENT_TYPES or (filename or "").lower().endswith(EXCEL_EXTENSIONS)


def _find_column(df: pd.DataFrame, wanted: str):
    for column in df.columns:
        if str(column).strip().lower() == wanted:
            return column
    return None


def _clean(value) -> str:
    if value is None or pd.isna(value):
        return ""
    # Room numbers read from Excel come back as floats (101.0).
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def extract_students_from_tabular(file_bytes: bytes, is_excel: bool) -> List[Dict[str, str]]:
    """
    Reads the first sheet (or the CSV) and returns the rows that have a name.
    "Name" and "Room" headers are matched case-insensitively; a missing Room
    column yields empty rooms.
    """
    try:
        if is_excel:
            df = pd.read_excel(io.BytesIO(file_bytes), sheet_name=0, engine="openpyxl", dtype=object)
        else:
            df = pd.read_csv(io.BytesIO(file_bytes), dtype=object)
    except Exception as e:
        raise ValidationError(f"Could not read the roster file: {e}") from e

    name_column = _find_column(df, "name")
    if name_column is None:
        raise ValidationError('No valid student names found. Use "Name" column header.')
    room_column = _find_column(df, "room")

    students = []
    for _, row in df.iterrows():
        name = _clean(row[name_column])
        if not name:
            continue
        room = _clean(row[room_column]) if room_column is not None else ""
        students.append({"name": name, "room": room})
    return students
