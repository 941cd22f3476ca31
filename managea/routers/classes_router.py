# /managea/routers/classes_router.py

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Response
from typing import List

from ..models import class_model, student_model
from ..services import class_service, database_service
from ..services.exceptions import NotFoundError, ValidationError

router = APIRouter()

# --- CLASS COLLECTION ENDPOINTS (/api/classes) ---

@router.get("", response_model=List[class_model.ClassSummary], summary="Get All Classes with Student Counts")
def get_all_classes(db: database_service.DatabaseService = Depends(database_service.get_db_service)):
    return class_service.get_all_classes_with_summary(db=db)

@router.post("", response_model=class_model.Class, status_code=status.HTTP_201_CREATED, summary="Create a New Class")
def create_new_class(class_create: class_model.ClassCreate, db: database_service.DatabaseService = Depends(database_service.get_db_service)):
    try:
        return class_service.create_class(class_data=class_create, db=db)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

# --- INDIVIDUAL CLASS RESOURCE ENDPOINTS (/api/classes/{class_id}) ---

@router.get("/{class_id}", response_model=class_model.ClassDetails, summary="Get a Single Class with Its Students")
def get_class_by_id(class_id: str, db: database_service.DatabaseService = Depends(database_service.get_db_service)):
    class_details = class_service.get_class_details_by_id(class_id=class_id, db=db)
    if class_details is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class with ID {class_id} not found")
    return class_details

@router.put("/{class_id}", response_model=class_model.Class, summary="Rename a Class")
def update_class_details(class_id: str, class_update: class_model.ClassCreate, db: database_service.DatabaseService = Depends(database_service.get_db_service)):
    try:
        updated_class = class_service.update_class(class_id=class_id, class_update=class_update, db=db)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if updated_class is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class with ID {class_id} not found")
    return updated_class

@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a Class, Its Students and Their Violations")
def delete_class(class_id: str, db: database_service.DatabaseService = Depends(database_service.get_db_service)):
    was_deleted = class_service.delete_class_by_id(class_id=class_id, db=db)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class with ID {class_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# --- STUDENT SUB-RESOURCE ENDPOINTS ---

@router.post("/{class_id}/students", response_model=student_model.Student, status_code=status.HTTP_201_CREATED, summary="Add a Student to a Class")
def add_student(class_id: str, student_create: student_model.StudentBase, db: database_service.DatabaseService = Depends(database_service.get_db_service)):
    try:
        return class_service.add_student_to_class(class_id=class_id, student_data=student_create, db=db)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

@router.post("/{class_id}/students/import", response_model=class_model.StudentImportResponse, status_code=status.HTTP_201_CREATED, summary="Bulk Import Students from a Spreadsheet")
async def import_students(class_id: str, file: UploadFile = File(...), db: database_service.DatabaseService = Depends(database_service.get_db_service)):
    try:
        return await class_service.import_students_from_upload(class_id=class_id, file=file, db=db)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
