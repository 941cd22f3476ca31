# /tests/test_violation_service.py

from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from managea.services import violation_service
from managea.services.class_helpers import crud
from managea.services.exceptions import (
    DuplicateViolation,
    NotFoundError,
    StoreError,
    ValidationError,
)


def _total(db, student_id):
    return db.get_student_by_id(student_id).total_fine


# --- Recording ---

def test_ali_scenario(db, ali, assert_fines_consistent):
    """
    GIVEN: Ali with no violations.
    WHEN:  Absent is recorded twice, Masbooq once, and the Absent entry is deleted.
    THEN:  The duplicate is rejected and the total follows 50 -> 50 -> 75 -> 25.
    """
    assert _total(db, ali.id) == 0

    assert violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent") == 50
    assert _total(db, ali.id) == 50

    with pytest.raises(DuplicateViolation):
        violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    assert _total(db, ali.id) == 50

    assert violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Masbooq") == 25
    assert _total(db, ali.id) == 75

    absent = db.find_violations(student_id=ali.id, type="Absent")[0]
    assert violation_service.delete_violation(db, absent.id) == 50
    assert _total(db, ali.id) == 25
    assert_fines_consistent()


def test_absent_fine_is_always_fifty(db, ali, bilal):
    violation_service.record_violation(db, bilal.id, "2024-03-01", "Isha", "No Cap")
    for day in ("2024-03-01", "2024-03-02", "2024-03-03"):
        assert violation_service.record_violation(db, ali.id, day, "Luhar", "Absent") == 50
    assert all(v.fine == 50 for v in db.find_violations(student_id=ali.id))


def test_late_to_school_forces_not_applicable_prayer(db, ali):
    fine = violation_service.record_violation(db, ali.id, "2024-02-01", "Subh", "Late to School")

    assert fine == 25
    (violation,) = db.find_violations(student_id=ali.id)
    assert violation.prayer == "N/A"
    assert violation.type == "Late to School"


def test_late_to_school_at_most_once_per_day(db, ali):
    violation_service.record_violation(db, ali.id, "2024-02-01", None, "Late to School")
    with pytest.raises(DuplicateViolation):
        violation_service.record_violation(db, ali.id, "2024-02-01", "Asar", "Late to School")
    assert _total(db, ali.id) == 25


def test_student_name_snapshot_defaults_to_current_name(db, ali):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Asar", "No Cap")
    violation_service.record_violation(db, ali.id, "2024-01-11", "Asar", "No Cap", student_name="Ali K.")

    names = sorted(v.student_name for v in db.find_violations(student_id=ali.id))
    assert names == ["Ali", "Ali K."]


def test_fine_is_fixed_at_creation_time(db, ali, monkeypatch):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    monkeypatch.setitem(violation_service.fine_table.FINE_MAP, "Absent", 80)

    (violation,) = db.find_violations(student_id=ali.id)
    assert violation.fine == 50
    assert violation_service.delete_violation(db, violation.id) == 50
    assert _total(db, ali.id) == 0


@pytest.mark.parametrize("date, prayer, violation_type", [
    ("2024-01-10", "Subh", "Sleeping"),
    ("2024-01-10", None, "Absent"),
    ("2024-01-10", "N/A", "Masbooq"),
    ("10/01/2024", "Subh", "Absent"),
])
def test_invalid_input_is_rejected_before_any_write(db, ali, date, prayer, violation_type):
    with pytest.raises(ValidationError):
        violation_service.record_violation(db, ali.id, date, prayer, violation_type)
    assert db.get_all_violations() == []
    assert _total(db, ali.id) == 0


def test_unknown_student_is_not_found(db):
    with pytest.raises(NotFoundError):
        violation_service.record_violation(db, "stu_missing", "2024-01-10", "Subh", "Absent")
    assert db.get_all_violations() == []


def test_store_constraint_catches_duplicates_the_precheck_missed(db, ali, monkeypatch):
    """A second session racing past the existence check still hits the unique constraint."""
    violation_service.record_violation(db, ali.id, "2024-01-10", "Magrib", "Absent")
    monkeypatch.setattr(db, "violation_exists", lambda *args: False)

    with pytest.raises(DuplicateViolation):
        violation_service.record_violation(db, ali.id, "2024-01-10", "Magrib", "Absent")

    assert len(db.get_all_violations()) == 1
    assert _total(db, ali.id) == 50


def test_store_failure_rolls_back_both_writes(db, ali, monkeypatch):
    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "commit", failing_commit)
    with pytest.raises(StoreError):
        violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    monkeypatch.undo()

    assert db.get_all_violations() == []
    assert _total(db, ali.id) == 0


# --- Batch Recording ---

def test_batch_counts_successes_and_duplicates(db, ali, bilal):
    """
    GIVEN: Bilal already has Late to School on 2024-02-01.
    WHEN:  The same violation is recorded for Ali and Bilal.
    THEN:  1 success, 1 duplicate; only Ali's total grows.
    """
    violation_service.record_violation(db, bilal.id, "2024-02-01", "N/A", "Late to School")

    result = violation_service.record_violations_batch(
        db, [ali.id, bilal.id], "2024-02-01", "N/A", "Late to School"
    )

    assert (result.recorded, result.duplicates, result.errors) == (1, 1, 0)
    assert result.message == "Fine added for 1 student (1 skipped)"
    assert _total(db, ali.id) == 25
    assert _total(db, bilal.id) == 25


def test_batch_continues_past_failures(db, ali, bilal, assert_fines_consistent):
    result = violation_service.record_violations_batch(
        db, [ali.id, "stu_missing", bilal.id], "2024-02-02", "Isha", "Absent"
    )

    assert (result.recorded, result.duplicates, result.errors) == (2, 0, 1)
    assert result.failures[0].student_id == "stu_missing"
    assert result.message == "Fine added for 2 students; 1 error"
    assert_fines_consistent()


def test_batch_of_only_duplicates(db, ali, bilal):
    args = ("2024-02-03", "Asar", "Masbooq")
    violation_service.record_violations_batch(db, [ali.id, bilal.id], *args)
    result = violation_service.record_violations_batch(db, [ali.id, bilal.id], *args)

    assert result.recorded == 0
    assert result.message == "All 2 entries were duplicates"


def test_batch_sees_its_own_earlier_writes(db, ali):
    result = violation_service.record_violations_batch(db, [ali.id, ali.id], "2024-02-04", "Subh", "Absent")
    assert (result.recorded, result.duplicates) == (1, 1)
    assert _total(db, ali.id) == 50


def test_batch_validates_shared_arguments_once(db, ali):
    with pytest.raises(ValidationError):
        violation_service.record_violations_batch(db, [ali.id], "2024-02-04", "Dhuha", "Absent")


# --- Deleting & Clearing ---

def test_delete_then_record_again(db, ali):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    (violation,) = db.find_violations(student_id=ali.id)
    violation_service.delete_violation(db, violation.id)

    assert violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent") == 50
    assert _total(db, ali.id) == 50


def test_delete_refunds_only_the_owning_student(db, ali, bilal):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "No Cap")
    violation_service.record_violation(db, bilal.id, "2024-01-10", "Subh", "Absent")
    (violation,) = db.find_violations(student_id=ali.id)

    assert violation_service.delete_violation(db, violation.id) == 25
    assert _total(db, ali.id) == 0
    assert _total(db, bilal.id) == 50


def test_delete_missing_violation(db):
    with pytest.raises(NotFoundError):
        violation_service.delete_violation(db, "vio_missing")


def test_clear_student_violations(db, ali, bilal):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    violation_service.record_violation(db, ali.id, "2024-01-11", None, "Late to School")
    violation_service.record_violation(db, bilal.id, "2024-01-11", "Isha", "No Cap")

    assert violation_service.clear_student_violations(db, ali.id) == 2

    assert db.find_violations(student_id=ali.id) == []
    assert _total(db, ali.id) == 0
    assert _total(db, bilal.id) == 25


def test_clear_student_violations_unknown_student(db):
    with pytest.raises(NotFoundError):
        violation_service.clear_student_violations(db, "stu_missing")


def test_clear_all_violations_resets_the_whole_roster(db, ali, bilal, assert_fines_consistent):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    violation_service.record_violation(db, bilal.id, "2024-01-10", "Luhar", "Masbooq")

    assert violation_service.clear_all_violations(db) == 2

    assert db.get_all_violations() == []
    assert _total(db, ali.id) == 0
    assert _total(db, bilal.id) == 0
    assert_fines_consistent()


def test_clear_all_with_stale_roster_only_resets_listed_students(db, ali, bilal):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    violation_service.record_violation(db, bilal.id, "2024-01-10", "Subh", "Absent")

    violation_service.clear_all_violations(db, students=[ali])

    assert db.get_all_violations() == []
    assert _total(db, ali.id) == 0
    assert _total(db, bilal.id) == 50


def test_deleting_a_student_removes_their_violations(db, ali, bilal):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    violation_service.record_violation(db, bilal.id, "2024-01-10", "Subh", "Absent")
    ali_id = ali.id

    assert crud.delete_student(ali_id, db) is True

    assert db.find_violations(student_id=ali_id) == []
    assert len(db.get_all_violations()) == 1


# --- Reconciliation & Read Side ---

def test_reconcile_repairs_drifted_totals(db, ali, bilal):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    db.set_total_fine(ali.id, 999)
    db.set_total_fine(bilal.id, 10)

    report = violation_service.reconcile_total_fines(db)

    assert report.checked == 2
    assert {(c.student_id, c.recorded_total, c.ledger_total) for c in report.corrections} == {
        (ali.id, 999, 50),
        (bilal.id, 10, 0),
    }
    assert _total(db, ali.id) == 50
    assert _total(db, bilal.id) == 0


def test_reconcile_when_consistent(db, ali):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    report = violation_service.reconcile_total_fines(db)
    assert report.corrections == []
    assert report.message == "All fine totals match the violation records"


def test_student_history_is_newest_first(db, ali):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    violation_service.record_violation(db, ali.id, "2024-01-09", "Isha", "No Cap")

    history = violation_service.get_student_history(db, ali.id)

    assert history.student.total_fine == 75
    assert [v.type for v in history.violations] == ["No Cap", "Absent"]


def test_list_violations_filters_by_date(db, ali, bilal):
    violation_service.record_violation(db, ali.id, "2024-01-10", "Subh", "Absent")
    violation_service.record_violation(db, bilal.id, "2024-01-11", "Subh", "Absent")

    on_tenth = violation_service.list_violations(db, date="2024-01-10")
    assert [v.student_id for v in on_tenth] == [ali.id]
    assert len(violation_service.list_violations(db)) == 2


def test_datetime_input_is_stored_as_a_calendar_date(db, ali):
    """
    GIVEN: A violation recorded with a datetime at 09:30.
    WHEN:  The same violation is recorded again at 18:00 on the same day.
    THEN:  The stored date has no time part and the second entry is a duplicate.
    """
    violation_service.record_violation(db, ali.id, datetime(2024, 1, 10, 9, 30), "Subh", "Absent")

    with pytest.raises(DuplicateViolation):
        violation_service.record_violation(db, ali.id, datetime(2024, 1, 10, 18, 0), "Subh", "Absent")

    (violation,) = db.find_violations(student_id=ali.id)
    assert violation.date == "2024-01-10"
    assert _total(db, ali.id) == 50
