# /managea/services/pdf_export_service.py

"""
PDF rendering for fine reports. No business logic lives here: callers pass
the records to print and get the document back as bytes.
"""

import io
import re
import unicodedata
from urllib.parse import quote
from xml.sax.saxutils import escape
from datetime import date as date_type
from typing import Iterable, List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

ROSTER_HEADER_COLOR = colors.Color(16 / 255, 185 / 255, 129 / 255)
STUDENT_HEADER_COLOR = colors.Color(17 / 255, 17 / 255, 17 / 255)


def attachment_headers(file_stem: str) -> dict:
    """
    Content-Disposition for a PDF download. Headers must be latin-1, so the
    plain `filename` is an ASCII fallback and `filename*` carries the UTF-8 name.
    """
    ascii_stem = unicodedata.normalize("NFKD", file_stem).encode("ascii", "ignore").decode("ascii")
    ascii_stem = re.sub(r"[^A-Za-z0-9._-]+", "_", ascii_stem).strip("_") or "report"
    return {
        "Content-Disposition": f"attachment; filename=\"{ascii_stem}.pdf\"; filename*=UTF-8''{quote(file_stem + '.pdf')}"
    }


def _grid_table(rows: List[List], header_color) -> Table:
    table = Table(rows, repeatRows=1, hAlign="LEFT")
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), header_color),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    return table


def _render(story: list, title: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4, title=title,
        leftMargin=14 * mm, rightMargin=14 * mm, topMargin=14 * mm, bottomMargin=14 * mm,
    )
    doc.build(story)
    return buffer.getvalue()


def build_roster_report(students: Iterable, title: str = "Managea",
                        generated_on: Optional[date_type] = None) -> bytes:
    """
    All students with an outstanding fine, highest first, plus the grand total
    of every student's fine.
    """
    students = list(students)
    styles = getSampleStyleSheet()
    generated_on = generated_on or date_type.today()

    fined = sorted((s for s in students if (s.total_fine or 0) > 0), key=lambda s: s.total_fine, reverse=True)
    rows = [["#", "Name", "Room", "Class", "Total Fine"]]
    for i, s in enumerate(fined, start=1):
        rows.append([i, s.name, s.room or "-", s.class_name or "-", s.total_fine])

    total = sum(s.total_fine or 0 for s in students)
    story = [
        Paragraph(f"{escape(title)}: All Student Fines", styles["Title"]),
        Paragraph(f"Generated: {generated_on.isoformat()}", styles["Normal"]),
        Spacer(1, 6 * mm),
        _grid_table(rows, ROSTER_HEADER_COLOR),
        Spacer(1, 6 * mm),
        Paragraph(f"Total Fines: {total}", styles["Heading3"]),
    ]
    return _render(story, f"{title} fines")


def build_student_report(student, violations: Iterable, title: str = "Managea",
                         generated_on: Optional[date_type] = None) -> bytes:
    """One student's violation history with their running total."""
    styles = getSampleStyleSheet()
    generated_on = generated_on or date_type.today()

    rows = [["#", "Date", "Prayer", "Violation", "Fine"]]
    for i, v in enumerate(violations, start=1):
        rows.append([i, v.date, v.prayer, v.type, v.fine])

    story = [
        Paragraph(f"Violation Report: {escape(student.name)}", styles["Title"]),
        Paragraph(f"Room: {escape(student.room or '-')}  |  Class: {escape(student.class_name or '-')}", styles["Normal"]),
        Paragraph(f"Generated: {generated_on.isoformat()}", styles["Normal"]),
        Spacer(1, 6 * mm),
        _grid_table(rows, STUDENT_HEADER_COLOR),
        Spacer(1, 6 * mm),
        Paragraph(f"Total Fine: {student.total_fine or 0}", styles["Heading3"]),
    ]
    return _render(story, f"{title} report for {student.name}")
