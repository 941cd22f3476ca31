# /managea/services/class_helpers/crud.py

import uuid
import logging
from typing import Dict, List, Optional

from ..database_service import DatabaseService
from ..exceptions import NotFoundError, ValidationError
from ...db.models.class_student_models import Class, Student

logger = logging.getLogger(__name__)


def _required_name(value: Optional[str], what: str) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError(f"{what} name is required.")
    return name


# --- CLASS-RELATED CORE BUSINESS LOGIC ---

def create_class(name: str, db: DatabaseService) -> Class:
    class_name = _required_name(name, "Class")
    if db.get_class_by_name(class_name):
        raise ValidationError(f"A class named '{class_name}' already exists.")

    new_class = db.add_class({"id": f"cls_{uuid.uuid4().hex[:12]}", "name": class_name})
    logger.info("Created class %s (%s)", new_class.id, class_name)
    return new_class


def rename_class(class_id: str, name: str, db: DatabaseService) -> Optional[Class]:
    """
    Renames a class and refreshes the class-name snapshot on its students in the
    same atomic block. Returns None if the class does not exist.
    """
    class_name = _required_name(name, "Class")
    existing = db.get_class_by_name(class_name)
    if existing and existing.id != class_id:
        raise ValidationError(f"A class named '{class_name}' already exists.")

    with db.atomic():
        updated_class = db.update_class(class_id, {"name": class_name})
        if updated_class is None:
            return None
        db.update_class_name_for_students(class_id, class_name)
    return updated_class


def delete_class_by_id(class_id: str, db: DatabaseService) -> bool:
    removed = db.delete_class_cascade(class_id)
    if removed is None:
        return False
    logger.info(
        "Deleted class %s with %d students and %d violations",
        class_id, removed["students"], removed["violations"],
    )
    return True


# --- STUDENT-RELATED CORE BUSINESS LOGIC ---

def _resolve_class(class_id: Optional[str], class_name: Optional[str], db: DatabaseService) -> Dict:
    """Returns the class_id/class_name pair to store on a student."""
    if not class_id:
        return {"class_id": None, "class_name": (class_name or "").strip()}
    db_class = db.get_class_by_id(class_id)
    if not db_class:
        raise NotFoundError(f"Class with ID {class_id} not found")
    return {"class_id": class_id, "class_name": (class_name or "").strip() or db_class.name}


def _student_record(name: Optional[str], room: Optional[str], class_fields: Dict) -> Dict:
    return {
        "id": f"stu_{uuid.uuid4().hex[:12]}",
        "name": _required_name(name, "Student"),
        "room": (room or "").strip(),
        **class_fields,
    }


def add_student(name: str, room: Optional[str], class_id: Optional[str],
                class_name: Optional[str], db: DatabaseService) -> Student:
    """Creates one student with a zero fine total."""
    record = _student_record(name, room, _resolve_class(class_id, class_name, db))
    return db.add_student(record)


def add_students_batch(students: List[Dict], class_id: Optional[str],
                       class_name: Optional[str], db: DatabaseService) -> List[Student]:
    """
    Creates many students in one atomic write. Every name is validated before
    anything is written.
    """
    class_fields = _resolve_class(class_id, class_name, db)
    records = [_student_record(s.get("name"), s.get("room"), class_fields) for s in students]
    if not records:
        return []
    return db.add_students(records)


def update_student(student_id: str, update_data: Dict, db: DatabaseService) -> Optional[Student]:
    """Business logic to update a student's details. Reassigning the class refreshes the class name."""
    if not update_data:
        raise ValidationError("No update data provided.")

    data = {}
    if "name" in update_data:
        data["name"] = _required_name(update_data["name"], "Student")
    if "room" in update_data:
        data["room"] = (update_data["room"] or "").strip()
    if "class_id" in update_data:
        data.update(_resolve_class(update_data["class_id"], None, db))
    if not data:
        raise ValidationError("No update data provided.")

    return db.update_student(student_id, data)


def delete_student(student_id: str, db: DatabaseService) -> bool:
    removed = db.delete_student_cascade(student_id)
    if removed is None:
        return False
    logger.info("Deleted student %s with %d violations", student_id, removed)
    return True
