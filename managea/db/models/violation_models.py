# /managea/db/models/violation_models.py

"""
ORM model for the violation ledger.

A violation's `fine` is captured when the row is written and never changes
afterwards, even if the fine table does.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from ..base_class import Base

# Name of the composite uniqueness constraint on the duplicate key. The
# violation repository matches integrity errors against it.
DUPLICATE_KEY_CONSTRAINT = "uq_violations_student_date_prayer_type"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Violation(Base):
    __tablename__ = "violations"
    __table_args__ = (
        UniqueConstraint("student_id", "date", "prayer", "type", name=DUPLICATE_KEY_CONSTRAINT),
    )

    id = Column(String, primary_key=True, index=True)
    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    student_name = Column(String, nullable=False)

    # ISO calendar date (YYYY-MM-DD), no time component.
    date = Column(String(10), nullable=False, index=True)
    # One of the five prayers, or "N/A" for non-prayer violations.
    prayer = Column(String, nullable=False)
    type = Column(String, nullable=False, index=True)
    fine = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    student = relationship("Student", back_populates="violations")
