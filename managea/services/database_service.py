# /managea/services/database_service.py

"""
The record store adapter. `DatabaseService` wraps one SQLAlchemy session and
exposes the domain's store operations: point-in-time queries, inserts,
partial updates (including the relative `total_fine` increment), deletes, an
all-or-nothing `atomic()` block, ordered snapshots and live subscriptions.

It owns no business rules. Every write method runs inside `atomic()`; calling
several of them inside an outer `atomic()` block commits them together.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Dict, Generator, Iterator, List, Optional, Set

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

# --- Core Database Setup ---
from managea.db.database import get_db

# --- Repository Imports ---
from .database_helpers.class_student_repository_sql import ClassStudentRepositorySQL
from .database_helpers.violation_repository_sql import ViolationRepositorySQL

from ..models import class_model, student_model, violation_model
from .exceptions import DomainError, StoreError
from .live_updates import CLASSES, STUDENTS, VIOLATIONS, LiveUpdateHub, Subscription, live_hub

logger = logging.getLogger(__name__)


class DatabaseService:
    def __init__(self, db_session: Session, hub: Optional[LiveUpdateHub] = None):
        if db_session is None:
            raise ValueError("A database session is required.")
        self.session = db_session
        self.hub = hub if hub is not None else live_hub
        self.class_student_repo = ClassStudentRepositorySQL(db_session)
        self.violation_repo = ViolationRepositorySQL(db_session)
        self._depth = 0
        self._dirty: Set[str] = set()

    # --- ATOMIC BATCH ---

    @contextmanager
    def atomic(self) -> Iterator["DatabaseService"]:
        """
        All-or-nothing write block. Nested blocks join the outermost one, which
        commits on success and rolls back on any exception. Database failures
        are re-raised as StoreError; domain errors pass through unchanged.
        Subscribers are notified only after a successful commit.
        """
        if self._depth > 0:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        self._dirty = set()
        try:
            yield self
            self.session.commit()
        except DomainError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Store operation failed and was rolled back: %s", e)
            raise StoreError(str(e)) from e
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._depth = 0
        changed, self._dirty = self._dirty, set()
        if changed:
            # Already committed: a failed broadcast is logged, not raised.
            try:
                self.hub.publish(sorted(changed), self.snapshot)
            except Exception:
                logger.exception("Publishing live updates for %s failed", ", ".join(sorted(changed)))

    def _touch(self, *kinds: str) -> None:
        self._dirty.update(kinds)

    # --- SNAPSHOTS & SUBSCRIPTIONS ---

    def snapshot(self, kind: str) -> List[Dict]:
        """Full ordered snapshot of one record kind as JSON-ready dictionaries."""
        if kind == CLASSES:
            records, schema = self.get_all_classes(), class_model.Class
        elif kind == STUDENTS:
            records, schema = self.get_all_students(), student_model.Student
        elif kind == VIOLATIONS:
            records, schema = self.get_all_violations(), violation_model.Violation
        else:
            raise ValueError(f"Unknown record kind: {kind}")
        return [schema.model_validate(r).model_dump(mode="json") for r in records]

    def subscribe(self, kind: str, callback: Callable[[List[Dict]], None]) -> Subscription:
        return self.hub.subscribe(kind, callback, self.snapshot)

    # --- CLASS METHODS ---
    def get_all_classes(self): return self.class_student_repo.get_all_classes()
    def get_class_by_id(self, class_id: str): return self.class_student_repo.get_class_by_id(class_id)
    def get_class_by_name(self, name: str): return self.class_student_repo.get_class_by_name(name)

    def add_class(self, class_record: Dict):
        with self.atomic():
            self._touch(CLASSES)
            return self.class_student_repo.add_class(class_record)

    def update_class(self, class_id: str, class_update_data: Dict):
        with self.atomic():
            self._touch(CLASSES)
            return self.class_student_repo.update_class(class_id, class_update_data)

    def delete_class_cascade(self, class_id: str) -> Optional[Dict[str, int]]:
        with self.atomic():
            self._touch(CLASSES, STUDENTS, VIOLATIONS)
            return self.class_student_repo.delete_class_cascade(class_id)

    # --- STUDENT METHODS ---
    def get_all_students(self, search: Optional[str] = None, class_id: Optional[str] = None):
        return self.class_student_repo.get_all_students(search=search, class_id=class_id)
    def get_student_by_id(self, student_id: str): return self.class_student_repo.get_student_by_id(student_id)
    def get_students_by_class_id(self, class_id: str): return self.class_student_repo.get_students_by_class_id(class_id)

    def add_student(self, student_record: Dict):
        with self.atomic():
            self._touch(STUDENTS)
            return self.class_student_repo.add_student(student_record)

    def add_students(self, student_records: List[Dict]):
        with self.atomic():
            self._touch(STUDENTS)
            return self.class_student_repo.add_students(student_records)

    def update_student(self, student_id: str, student_update_data: Dict):
        with self.atomic():
            self._touch(STUDENTS)
            return self.class_student_repo.update_student(student_id, student_update_data)

    def update_class_name_for_students(self, class_id: str, class_name: str) -> int:
        with self.atomic():
            self._touch(STUDENTS)
            return self.class_student_repo.update_class_name_for_students(class_id, class_name)

    def delete_student_cascade(self, student_id: str) -> Optional[int]:
        with self.atomic():
            self._touch(STUDENTS, VIOLATIONS)
            return self.class_student_repo.delete_student_cascade(student_id)

    def increment_total_fine(self, student_id: str, delta: int) -> int:
        with self.atomic():
            self._touch(STUDENTS)
            return self.class_student_repo.increment_total_fine(student_id, delta)

    def set_total_fine(self, student_id: str, value: int) -> int:
        with self.atomic():
            self._touch(STUDENTS)
            return self.class_student_repo.set_total_fine(student_id, value)

    def reset_total_fines(self, student_ids: Optional[List[str]] = None) -> int:
        with self.atomic():
            self._touch(STUDENTS)
            return self.class_student_repo.reset_total_fines(student_ids)

    # --- VIOLATION METHODS ---
    def get_all_violations(self): return self.violation_repo.get_all_violations()
    def get_violation_by_id(self, violation_id: str): return self.violation_repo.get_violation_by_id(violation_id)
    def find_violations(self, **filters): return self.violation_repo.find_violations(**filters)
    def get_fine_totals_by_student(self) -> Dict[str, int]: return self.violation_repo.get_fine_totals_by_student()

    def violation_exists(self, student_id: str, date: str, prayer: str, violation_type: str) -> bool:
        return self.violation_repo.violation_exists(student_id, date, prayer, violation_type)

    def add_violation(self, violation_record: Dict):
        with self.atomic():
            self._touch(VIOLATIONS)
            return self.violation_repo.add_violation(violation_record)

    def delete_violation(self, violation) -> None:
        with self.atomic():
            self._touch(VIOLATIONS)
            self.violation_repo.delete_violation(violation)

    def delete_violations_by_student_id(self, student_id: str) -> int:
        with self.atomic():
            self._touch(VIOLATIONS)
            return self.violation_repo.delete_violations_by_student_id(student_id)

    def delete_all_violations(self) -> int:
        with self.atomic():
            self._touch(VIOLATIONS)
            return self.violation_repo.delete_all_violations()


# --- DEPENDENCY PROVIDER ---
def get_db_service(db: Session = Depends(get_db)) -> Generator[DatabaseService, None, None]:
    """
    FastAPI dependency that provides a DatabaseService instance bound to the
    request's session and the process-wide live update hub.
    """
    yield DatabaseService(db_session=db)
