# /managea/services/database_helpers/violation_repository_sql.py

"""
Raw SQLAlchemy queries for the violation ledger. Like the roster repository,
nothing here commits.
"""

from typing import Dict, List, Optional

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from managea.db.models.violation_models import Violation, DUPLICATE_KEY_CONSTRAINT
from ..exceptions import DuplicateViolation


class ViolationRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_all_violations(self) -> List[Violation]:
        """Every violation, newest first."""
        return self.db.query(Violation).order_by(Violation.created_at.desc()).all()

    def get_violation_by_id(self, violation_id: str) -> Optional[Violation]:
        return self.db.query(Violation).filter(Violation.id == violation_id).first()

    def find_violations(self, **filters) -> List[Violation]:
        """Point-in-time read with equality filters, e.g. find_violations(student_id=..., date=...)."""
        return (
            self.db.query(Violation)
            .filter_by(**filters)
            .order_by(Violation.created_at.desc())
            .all()
        )

    def violation_exists(self, student_id: str, date: str, prayer: str, violation_type: str) -> bool:
        return (
            self.db.query(Violation.id)
            .filter(
                Violation.student_id == student_id,
                Violation.date == date,
                Violation.prayer == prayer,
                Violation.type == violation_type,
            )
            .first()
            is not None
        )

    def add_violation(self, record: Dict) -> Violation:
        """
        Inserts a violation and flushes immediately so the composite unique
        constraint is checked now. A concurrent writer that slipped past the
        duplicate pre-check surfaces here as DuplicateViolation.
        """
        new_violation = Violation(**record)
        self.db.add(new_violation)
        try:
            self.db.flush()
        except IntegrityError as e:
            if _is_duplicate_key_error(e):
                raise DuplicateViolation(
                    record['student_id'], record['date'], record['prayer'], record['type']
                ) from e
            raise
        return new_violation

    def delete_violation(self, violation: Violation) -> None:
        self.db.delete(violation)
        self.db.flush()

    def delete_violations_by_student_id(self, student_id: str) -> int:
        return self.db.execute(
            delete(Violation)
            .where(Violation.student_id == student_id)
            .execution_options(synchronize_session="fetch")
        ).rowcount

    def delete_all_violations(self) -> int:
        return self.db.execute(
            delete(Violation).execution_options(synchronize_session="fetch")
        ).rowcount

    def get_fine_totals_by_student(self) -> Dict[str, int]:
        """Ledger totals: {student_id: sum(fine)} for students that have violations."""
        rows = (
            self.db.query(Violation.student_id, func.coalesce(func.sum(Violation.fine), 0))
            .group_by(Violation.student_id)
            .all()
        )
        return {student_id: int(total) for student_id, total in rows}


def _is_duplicate_key_error(error: IntegrityError) -> bool:
    # PostgreSQL reports the constraint name; SQLite reports the column list.
    message = str(error.orig).lower()
    return (
        DUPLICATE_KEY_CONSTRAINT in message
        or "violations.student_id, violations.date, violations.prayer, violations.type" in message
    )
