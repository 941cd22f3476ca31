# /managea/models/class_model.py

from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional

from .student_model import Student


class ClassCreate(BaseModel):
    """Payload for creating or renaming a class."""
    name: str = Field(..., min_length=1, description="Unique display name of the class.")


class Class(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: Optional[datetime] = None


class ClassSummary(BaseModel):
    id: str
    name: str
    studentCount: int = Field(default=0, description="Number of students currently in the class.")


class ClassDetails(BaseModel):
    id: str
    name: str
    created_at: Optional[datetime] = None
    students: List[Student]


class StudentImportResponse(BaseModel):
    """Result of a bulk roster import. `message` is the single user-facing summary."""
    message: str
    class_id: str
    imported: int
