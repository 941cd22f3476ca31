# /managea/services/class_service.py

"""
This service module acts as the business logic layer for roster operations:
classes, students and bulk imports.

It serves as a facade, orchestrating calls to lower-level specialist helpers
(`crud` and `roster_ingestion`) and the `DatabaseService`. Fine accounting is
not handled here; see `violation_service`.
"""

from typing import Dict, List, Optional

import pandas as pd
from fastapi import UploadFile

from ..models import class_model, student_model
from .database_service import DatabaseService

# Import the specialist helper modules this service orchestrates.
from .class_helpers import roster_ingestion, crud


# --- Facade Methods for CRUD Operations ---

def create_class(class_data: class_model.ClassCreate, db: DatabaseService):
    return crud.create_class(name=class_data.name, db=db)


def update_class(class_id: str, class_update: class_model.ClassCreate, db: DatabaseService):
    """Renames a class. Returns None if the class does not exist."""
    return crud.rename_class(class_id=class_id, name=class_update.name, db=db)


def delete_class_by_id(class_id: str, db: DatabaseService) -> bool:
    """Deletes a class together with its students and their violations."""
    return crud.delete_class_by_id(class_id=class_id, db=db)


def add_student(student_data: student_model.StudentCreate, db: DatabaseService):
    return crud.add_student(
        name=student_data.name,
        room=student_data.room,
        class_id=student_data.class_id,
        class_name=student_data.class_name,
        db=db,
    )


def add_student_to_class(class_id: str, student_data: student_model.StudentBase, db: DatabaseService):
    return crud.add_student(name=student_data.name, room=student_data.room, class_id=class_id, class_name=None, db=db)


def add_students_batch(students: List[Dict], class_id: Optional[str], class_name: Optional[str], db: DatabaseService):
    return crud.add_students_batch(students=students, class_id=class_id, class_name=class_name, db=db)


def update_student(student_id: str, student_update: student_model.StudentUpdate, db: DatabaseService):
    update_data = student_update.model_dump(exclude_unset=True)
    return crud.update_student(student_id=student_id, update_data=update_data, db=db)


def delete_student(student_id: str, db: DatabaseService) -> bool:
    return crud.delete_student(student_id=student_id, db=db)


async def import_students_from_upload(class_id: str, file: UploadFile, db: DatabaseService) -> Dict:
    """Reads the uploaded spreadsheet and hands it to the ingestion helper."""
    file_bytes = await file.read()
    return roster_ingestion.import_students_from_upload(
        class_id=class_id,
        file_bytes=file_bytes,
        db=db,
        filename=file.filename or "",
        content_type=file.content_type or "",
    )


# --- Data Assembly ---

def get_all_classes_with_summary(db: DatabaseService) -> List[Dict]:
    """Retrieves all classes and enriches them with student counts."""
    all_classes = db.get_all_classes()
    if not all_classes:
        return []

    students_df = pd.DataFrame([{"class_id": s.class_id} for s in db.get_all_students()])

    student_counts = {}
    if not students_df.empty and 'class_id' in students_df.columns:
        student_counts = students_df.dropna(subset=['class_id']).groupby('class_id').size().to_dict()

    return [
        {"id": cls.id, "name": cls.name, "studentCount": int(student_counts.get(cls.id, 0))}
        for cls in all_classes
    ]


def get_class_details_by_id(class_id: str, db: DatabaseService) -> Optional[Dict]:
    class_info = db.get_class_by_id(class_id)
    if not class_info:
        return None

    return {
        "id": class_info.id,
        "name": class_info.name,
        "created_at": class_info.created_at,
        "students": db.get_students_by_class_id(class_id),
    }


def list_students(db: DatabaseService, search: Optional[str] = None, class_id: Optional[str] = None):
    return db.get_all_students(search=(search or "").strip() or None, class_id=class_id)
