# /managea/services/database_helpers/class_student_repository_sql.py

"""
This module contains all the raw SQLAlchemy queries for the Class and Student
tables. It is the direct interface to the database for all roster data.

Methods here never commit. They add, flush and delete inside whatever
transaction the calling `DatabaseService.atomic()` block has open, so several
repository calls can be combined into one all-or-nothing write.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from managea.db.models.class_student_models import Class, Student
from managea.db.models.violation_models import Violation


class ClassStudentRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Class Methods ---

    def get_all_classes(self) -> List[Class]:
        """Retrieves every class, ordered by name."""
        return self.db.query(Class).order_by(Class.name).all()

    def get_class_by_id(self, class_id: str) -> Optional[Class]:
        return self.db.query(Class).filter(Class.id == class_id).first()

    def get_class_by_name(self, name: str) -> Optional[Class]:
        return self.db.query(Class).filter(Class.name == name).first()

    def add_class(self, record: Dict) -> Class:
        new_class = Class(**record)
        self.db.add(new_class)
        self.db.flush()
        return new_class

    def update_class(self, class_id: str, data: Dict) -> Optional[Class]:
        db_class = self.get_class_by_id(class_id)
        if db_class:
            for key, value in data.items():
                setattr(db_class, key, value)
            self.db.flush()
        return db_class

    def delete_class_cascade(self, class_id: str) -> Optional[Dict[str, int]]:
        """
        Deletes a class, its students and their violations with set-based
        statements keyed on the class id. Returns the number of rows removed
        per kind, or None if the class does not exist.
        """
        db_class = self.get_class_by_id(class_id)
        if not db_class:
            return None

        member_ids = select(Student.id).where(Student.class_id == class_id).scalar_subquery()
        violations_deleted = self.db.execute(
            delete(Violation)
            .where(Violation.student_id.in_(member_ids))
            .execution_options(synchronize_session="fetch")
        ).rowcount
        students_deleted = self.db.execute(
            delete(Student)
            .where(Student.class_id == class_id)
            .execution_options(synchronize_session="fetch")
        ).rowcount
        self.db.delete(db_class)
        self.db.flush()
        return {"students": students_deleted, "violations": violations_deleted}

    # --- Student Methods ---

    def get_all_students(self, search: Optional[str] = None, class_id: Optional[str] = None) -> List[Student]:
        """
        Retrieves students ordered by name, optionally narrowed by a
        case-insensitive name fragment and/or a class.
        """
        query = self.db.query(Student)
        if class_id is not None:
            query = query.filter(Student.class_id == class_id)
        if search:
            query = query.filter(func.lower(Student.name).contains(search.lower(), autoescape=True))
        return query.order_by(Student.name).all()

    def get_student_by_id(self, student_id: str) -> Optional[Student]:
        return self.db.query(Student).filter(Student.id == student_id).first()

    def get_students_by_class_id(self, class_id: str) -> List[Student]:
        return self.db.query(Student).filter(Student.class_id == class_id).order_by(Student.name).all()

    def add_student(self, record: Dict) -> Student:
        record['total_fine'] = 0
        new_student = Student(**record)
        self.db.add(new_student)
        self.db.flush()
        return new_student

    def add_students(self, records: Iterable[Dict]) -> List[Student]:
        new_students = []
        for record in records:
            record['total_fine'] = 0
            new_students.append(Student(**record))
        self.db.add_all(new_students)
        self.db.flush()
        return new_students

    def update_student(self, student_id: str, data: Dict) -> Optional[Student]:
        db_student = self.get_student_by_id(student_id)
        if db_student:
            for key, value in data.items():
                setattr(db_student, key, value)
            self.db.flush()
        return db_student

    def update_class_name_for_students(self, class_id: str, class_name: str) -> int:
        return self.db.execute(
            update(Student)
            .where(Student.class_id == class_id)
            .values(class_name=class_name)
            .execution_options(synchronize_session="fetch")
        ).rowcount

    def delete_student_cascade(self, student_id: str) -> Optional[int]:
        """
        Deletes a student and all their violations. Returns the number of
        violations removed, or None if the student does not exist.
        """
        db_student = self.get_student_by_id(student_id)
        if not db_student:
            return None
        violations_deleted = self.db.execute(
            delete(Violation)
            .where(Violation.student_id == student_id)
            .execution_options(synchronize_session="fetch")
        ).rowcount
        self.db.delete(db_student)
        self.db.flush()
        return violations_deleted

    # --- Fine Projection Methods ---

    def increment_total_fine(self, student_id: str, delta: int) -> int:
        """Relative update executed by the database: total_fine = total_fine + delta."""
        return self.db.execute(
            update(Student)
            .where(Student.id == student_id)
            .values(total_fine=Student.total_fine + delta)
            .execution_options(synchronize_session="fetch")
        ).rowcount

    def set_total_fine(self, student_id: str, value: int) -> int:
        return self.db.execute(
            update(Student)
            .where(Student.id == student_id)
            .values(total_fine=value)
            .execution_options(synchronize_session="fetch")
        ).rowcount

    def reset_total_fines(self, student_ids: Optional[List[str]] = None) -> int:
        """Sets total_fine to 0 for the given students, or for every student when None."""
        statement = update(Student).values(total_fine=0)
        if student_ids is not None:
            if not student_ids:
                return 0
            statement = statement.where(Student.id.in_(student_ids))
        return self.db.execute(statement.execution_options(synchronize_session="fetch")).rowcount
