# /managea/models/student_model.py

# --- Core Imports ---
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

# --- Model Definitions ---

class StudentBase(BaseModel):
    """
    The base model for a Student. Contains fields common to create and read operations.
    """
    name: str = Field(..., min_length=1, description="The full name of the student.")
    room: str = Field(default="", description="The hostel room number, if any.")

class StudentCreate(StudentBase):
    """
    The model used for creating a single student. The class is optional; when
    `class_name` is omitted it is looked up from `class_id`.
    """
    class_id: Optional[str] = Field(default=None)
    class_name: Optional[str] = Field(default=None)

class StudentUpdate(BaseModel):
    """
    The model for updating a student. All fields are optional to allow for
    partial updates. `total_fine` is not updatable here; only the accounting
    service may change it.
    """
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = Field(default=None, min_length=1)
    room: Optional[str] = Field(default=None)
    class_id: Optional[str] = Field(default=None)

class Student(StudentBase):
    """
    The full representation of a Student resource, as it is stored in the
    database and returned by the API.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="The unique, server-generated identifier for the student.")
    class_id: Optional[str] = Field(default=None, description="The ID of the class this student belongs to.")
    class_name: str = Field(default="", description="Snapshot of the class name.")
    total_fine: int = Field(default=0, description="Sum of the fines of all the student's violations.")
    created_at: Optional[datetime] = None
