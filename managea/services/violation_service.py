# /managea/services/violation_service.py

"""
The violation accounting service.

This module is the only writer of the violation ledger and of each student's
`total_fine`. It keeps one invariant: after every operation completes, a
student's `total_fine` equals the sum of `fine` over that student's
violations. Every ledger write and its matching `total_fine` change are issued
inside a single `DatabaseService.atomic()` block so they commit or roll back
together.

Duplicate suppression has two layers: an explicit existence check on the
duplicate key (student, date, prayer, type), and the composite unique
constraint on the violations table which catches writers racing from other
sessions. Both surface as `DuplicateViolation`.
"""

import logging
import uuid
from datetime import date as date_type, datetime
from typing import Iterable, List, Optional, Union

from . import fine_table
from .database_service import DatabaseService
from .exceptions import DomainError, DuplicateViolation, NotFoundError, ValidationError
from ..models.violation_model import (
    BatchFailure,
    FineCorrection,
    ReconciliationReport,
    StudentHistory,
    Violation as ViolationSchema,
    ViolationBatchResult,
)
from ..models.student_model import Student as StudentSchema

logger = logging.getLogger(__name__)


# --- HELPER FUNCTIONS ---

def _normalize_date(value: Union[str, date_type]) -> str:
    # Calendar date only: a datetime keeps its date and drops the time.
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date_type):
        return value.isoformat()
    try:
        return date_type.fromisoformat(str(value).strip()).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid date '{value}'. Use the YYYY-MM-DD format.")


def _normalize_key(date: Union[str, date_type], prayer: Optional[str], violation_type: str):
    """
    Validates the shared part of the duplicate key and returns (date, prayer, type)
    as stored. Non-prayer violations always carry the "N/A" prayer.
    """
    if violation_type not in fine_table.VIOLATION_TYPES:
        raise ValidationError(f"Unknown violation type '{violation_type}'.")

    if fine_table.is_prayer_violation(violation_type):
        if prayer not in fine_table.PRAYERS:
            raise ValidationError(
                f"'{violation_type}' requires one of the prayers: {', '.join(fine_table.PRAYERS)}."
            )
    else:
        prayer = fine_table.NOT_APPLICABLE

    return _normalize_date(date), prayer, violation_type


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _batch_message(result: ViolationBatchResult) -> str:
    """One summary line for the whole batch."""
    if result.recorded > 0:
        message = f"Fine added for {_plural(result.recorded, 'student')}"
        if result.duplicates > 0:
            message += f" ({result.duplicates} skipped)"
    elif result.duplicates > 0 and result.errors == 0:
        return f"All {result.duplicates} entries were duplicates"
    else:
        message = "No fines were added"
        if result.duplicates > 0:
            message += f" ({result.duplicates} skipped)"
    if result.errors > 0:
        message += f"; {_plural(result.errors, 'error')}"
    return message


# --- RECORDING ---

def _record(db: DatabaseService, student_id: str, date: str, prayer: str,
            violation_type: str, student_name: Optional[str]) -> int:
    with db.atomic():
        if db.violation_exists(student_id, date, prayer, violation_type):
            raise DuplicateViolation(student_id, date, prayer, violation_type)

        student = db.get_student_by_id(student_id)
        if not student:
            raise NotFoundError(f"Student with ID {student_id} not found")

        fine = fine_table.fine_for(violation_type)
        db.add_violation({
            "id": f"vio_{uuid.uuid4().hex[:12]}",
            "student_id": student_id,
            "student_name": (student_name or "").strip() or student.name,
            "date": date,
            "prayer": prayer,
            "type": violation_type,
            "fine": fine,
        })
        db.increment_total_fine(student_id, fine)
    return fine


def record_violation(
    db: DatabaseService,
    student_id: str,
    date: Union[str, date_type],
    prayer: Optional[str],
    violation_type: str,
    student_name: Optional[str] = None,
) -> int:
    """
    Records one violation and adds its fine to the student's total.

    Returns the fine that was recorded. Raises DuplicateViolation if the same
    (student, date, prayer, type) is already on the ledger, in which case
    nothing is written.
    """
    date, prayer, violation_type = _normalize_key(date, prayer, violation_type)
    try:
        fine = _record(db, student_id, date, prayer, violation_type, student_name)
    except DuplicateViolation:
        logger.warning("Duplicate violation ignored: %s %s %s %s", student_id, date, prayer, violation_type)
        raise
    logger.info("Recorded '%s' (%s) on %s for student %s, fine %d", violation_type, prayer, date, student_id, fine)
    return fine


def record_violations_batch(
    db: DatabaseService,
    student_ids: Iterable[str],
    date: Union[str, date_type],
    prayer: Optional[str],
    violation_type: str,
) -> ViolationBatchResult:
    """
    Records the same violation for several students, one at a time and in
    order. Each student is an independent atomic write: duplicates and
    failures are counted and the batch carries on.
    """
    date, prayer, violation_type = _normalize_key(date, prayer, violation_type)
    result = ViolationBatchResult()

    for student_id in student_ids:
        try:
            _record(db, student_id, date, prayer, violation_type, None)
            result.recorded += 1
        except DuplicateViolation:
            result.duplicates += 1
        except DomainError as e:
            result.errors += 1
            result.failures.append(BatchFailure(student_id=student_id, reason=str(e)))
            logger.error("Could not record violation for student %s: %s", student_id, e)

    result.message = _batch_message(result)
    logger.info("Batch '%s' on %s: %s", violation_type, date, result.message)
    return result


# --- DELETION & CLEARING ---

def delete_violation(db: DatabaseService, violation_id: str) -> int:
    """
    Removes one violation and subtracts its stored fine from the student's
    total. The decrement is read from the violation row inside the same atomic
    block, so it always matches what was added. Returns the removed fine.
    """
    with db.atomic():
        violation = db.get_violation_by_id(violation_id)
        if not violation:
            raise NotFoundError(f"Violation with ID {violation_id} not found")
        student_id, fine = violation.student_id, violation.fine
        db.delete_violation(violation)
        db.increment_total_fine(student_id, -fine)
    logger.info("Deleted violation %s for student %s, fine %d refunded", violation_id, student_id, fine)
    return fine


def clear_student_violations(db: DatabaseService, student_id: str) -> int:
    """Deletes every violation of one student and sets their total to exactly 0."""
    with db.atomic():
        if not db.get_student_by_id(student_id):
            raise NotFoundError(f"Student with ID {student_id} not found")
        deleted = db.delete_violations_by_student_id(student_id)
        db.set_total_fine(student_id, 0)
    logger.info("Cleared %d violations for student %s", deleted, student_id)
    return deleted


def clear_all_violations(db: DatabaseService, students: Optional[Iterable] = None) -> int:
    """
    Deletes every violation in the system and resets fines to 0.

    With `students=None` the whole roster is reset inside the same atomic
    block. When a roster snapshot is supplied, only those students are reset;
    a student missing from the snapshot keeps their old total.
    """
    student_ids = None
    if students is not None:
        student_ids = [s if isinstance(s, str) else s.id for s in students]

    with db.atomic():
        deleted = db.delete_all_violations()
        reset = db.reset_total_fines(student_ids)
    logger.info("Cleared all %d violations; reset fines for %d students", deleted, reset)
    return deleted


# --- INTEGRITY AUDIT ---

def reconcile_total_fines(db: DatabaseService) -> ReconciliationReport:
    """
    Recomputes each student's total from the ledger and repairs any student
    whose stored `total_fine` disagrees, all in one atomic block.
    """
    with db.atomic():
        ledger = db.get_fine_totals_by_student()
        students = db.get_all_students()
        corrections = []
        for student in students:
            expected = ledger.get(student.id, 0)
            if student.total_fine != expected:
                corrections.append(FineCorrection(
                    student_id=student.id,
                    student_name=student.name,
                    recorded_total=student.total_fine,
                    ledger_total=expected,
                ))
                db.set_total_fine(student.id, expected)

    for c in corrections:
        logger.warning("Repaired total fine for %s: %d -> %d", c.student_id, c.recorded_total, c.ledger_total)

    if corrections:
        message = f"Corrected {_plural(len(corrections), 'student')}"
    else:
        message = "All fine totals match the violation records"
    return ReconciliationReport(checked=len(students), corrections=corrections, message=message)


# --- READ SIDE ---

def list_violations(db: DatabaseService, student_id: Optional[str] = None,
                    date: Optional[Union[str, date_type]] = None) -> List:
    filters = {}
    if student_id:
        filters["student_id"] = student_id
    if date:
        filters["date"] = _normalize_date(date)
    return db.find_violations(**filters) if filters else db.get_all_violations()


def get_student_history(db: DatabaseService, student_id: str) -> StudentHistory:
    student = db.get_student_by_id(student_id)
    if not student:
        raise NotFoundError(f"Student with ID {student_id} not found")
    violations = db.find_violations(student_id=student_id)
    return StudentHistory(
        student=StudentSchema.model_validate(student),
        violations=[ViolationSchema.model_validate(v) for v in violations],
    )
