# /managea/routers/violations_router.py

from datetime import date as date_type
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from ..models import violation_model
from ..services import violation_service
from ..services.database_service import DatabaseService, get_db_service
from ..services.exceptions import DuplicateViolation, NotFoundError, ValidationError

router = APIRouter()


@router.get("", response_model=List[violation_model.Violation], summary="List Violations")
def list_violations(
    student_id: Optional[str] = None,
    date: Optional[date_type] = None,
    db: DatabaseService = Depends(get_db_service)
):
    """All violations, newest first, optionally filtered by student and/or date."""
    return violation_service.list_violations(db=db, student_id=student_id, date=date)


@router.post(
    "",
    response_model=violation_model.RecordViolationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a Violation",
    responses={409: {"description": "The same violation is already recorded"}}
)
def record_violation(payload: violation_model.ViolationCreate, db: DatabaseService = Depends(get_db_service)):
    try:
        fine = violation_service.record_violation(
            db=db,
            student_id=payload.student_id,
            date=payload.date,
            prayer=payload.prayer.value if payload.prayer else None,
            violation_type=payload.type.value,
            student_name=payload.student_name,
        )
    except DuplicateViolation as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return violation_model.RecordViolationResponse(fine=fine, message=f"Fine of {fine} added")


@router.post("/batch", response_model=violation_model.ViolationBatchResult, summary="Record a Violation for Several Students")
def record_violations_batch(payload: violation_model.ViolationBatchCreate, db: DatabaseService = Depends(get_db_service)):
    """
    Records the same violation for each listed student. Duplicates and per-student
    failures are counted in the response instead of failing the request.
    """
    try:
        return violation_service.record_violations_batch(
            db=db,
            student_ids=payload.student_ids,
            date=payload.date,
            prayer=payload.prayer.value if payload.prayer else None,
            violation_type=payload.type.value,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.delete("", response_model=violation_model.ClearResult, summary="Clear All Violations")
def clear_all_violations(db: DatabaseService = Depends(get_db_service)):
    """Deletes every violation and resets every student's fine to 0."""
    deleted = violation_service.clear_all_violations(db=db)
    return violation_model.ClearResult(deleted=deleted, message="All violations cleared")


@router.post("/reconcile", response_model=violation_model.ReconciliationReport, summary="Repair Fine Totals from the Violation Records")
def reconcile_total_fines(db: DatabaseService = Depends(get_db_service)):
    return violation_service.reconcile_total_fines(db=db)


@router.delete("/{violation_id}", response_model=violation_model.DeleteViolationResponse, summary="Delete a Violation")
def delete_violation(violation_id: str, db: DatabaseService = Depends(get_db_service)):
    try:
        fine = violation_service.delete_violation(db=db, violation_id=violation_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return violation_model.DeleteViolationResponse(fine=fine, message="Violation removed")
