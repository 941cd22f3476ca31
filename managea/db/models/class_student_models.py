# /managea/db/models/class_student_models.py

"""
This module defines the SQLAlchemy ORM models for the `Class` and `Student`
entities, which represent the hostel's class list and the students housed
within it.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Class(Base):
    """
    SQLAlchemy model representing a class (a group of students).

    Class names are display strings and must be unique across the hostel.
    """
    __tablename__ = "classes"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    students = relationship("Student", back_populates="class_", passive_deletes=True)


class Student(Base):
    """
    SQLAlchemy model representing a single student.

    `class_name` is a denormalised copy of the owning class's name, and
    `total_fine` is a maintained projection of the student's violation ledger.
    Only the accounting service writes `total_fine`.
    """
    __tablename__ = "students"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    room = Column(String, nullable=False, default="")

    # Empty (NULL) when the student is not assigned to a class.
    class_id = Column(String, ForeignKey("classes.id", ondelete="CASCADE"), nullable=True, index=True)
    class_name = Column(String, nullable=False, default="")

    total_fine = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    class_ = relationship("Class", back_populates="students")
    violations = relationship("Violation", back_populates="student", passive_deletes=True)
