# /managea/routers/students_router.py

from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.responses import StreamingResponse
from typing import List, Optional
import io

from ..config import REPORT_TITLE
from ..models import student_model, violation_model
from ..services import class_service, violation_service, pdf_export_service
from ..services.database_service import DatabaseService, get_db_service
from ..services.exceptions import NotFoundError, ValidationError

router = APIRouter()


@router.get("", response_model=List[student_model.Student], summary="List Students")
def list_students(
    search: Optional[str] = None,
    class_id: Optional[str] = None,
    db: DatabaseService = Depends(get_db_service)
):
    """Students ordered by name, filtered by a case-insensitive name fragment and/or class."""
    return class_service.list_students(db=db, search=search, class_id=class_id)


@router.post("", response_model=student_model.Student, status_code=status.HTTP_201_CREATED, summary="Create a Student")
def create_student(student_create: student_model.StudentCreate, db: DatabaseService = Depends(get_db_service)):
    try:
        return class_service.add_student(student_data=student_create, db=db)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get("/{student_id}", response_model=student_model.Student, summary="Get a Student")
def get_student(student_id: str, db: DatabaseService = Depends(get_db_service)):
    student = db.get_student_by_id(student_id)
    if student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found")
    return student


@router.patch("/{student_id}", response_model=student_model.Student, summary="Update a Student")
def update_student_details(student_id: str, student_update: student_model.StudentUpdate, db: DatabaseService = Depends(get_db_service)):
    try:
        updated_student = class_service.update_student(student_id=student_id, student_update=student_update, db=db)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if updated_student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found")
    return updated_student


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a Student and Their Violations")
def delete_student(student_id: str, db: DatabaseService = Depends(get_db_service)):
    if not class_service.delete_student(student_id=student_id, db=db):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- VIOLATION HISTORY SUB-RESOURCE ---

@router.get("/{student_id}/violations", response_model=violation_model.StudentHistory, summary="Get a Student's Violation History")
def get_student_history(student_id: str, db: DatabaseService = Depends(get_db_service)):
    try:
        return violation_service.get_student_history(db=db, student_id=student_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{student_id}/violations", response_model=violation_model.ClearResult, summary="Clear a Student's Violations")
def clear_student_violations(student_id: str, db: DatabaseService = Depends(get_db_service)):
    try:
        deleted = violation_service.clear_student_violations(db=db, student_id=student_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return violation_model.ClearResult(deleted=deleted, message="All violations cleared")


@router.get("/{student_id}/report.pdf", summary="Export a Student's Violation Report as PDF", response_class=StreamingResponse)
def export_student_report(student_id: str, db: DatabaseService = Depends(get_db_service)):
    student = db.get_student_by_id(student_id)
    if student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found")
    violations = db.find_violations(student_id=student_id)
    pdf_bytes = pdf_export_service.build_student_report(student, violations, title=REPORT_TITLE)
    file_stem = f"violations_{student.name.replace(' ', '_').lower()}"
    return StreamingResponse(io.BytesIO(pdf_bytes), media_type="application/pdf", headers=pdf_export_service.attachment_headers(file_stem))
