# /managea/models/violation_model.py

# --- Core Imports ---
from datetime import date as date_type, datetime
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional

from .student_model import Student

# --- Enumerations ---

class Prayer(str, Enum):
    SUBH = "Subh"
    LUHAR = "Luhar"
    ASAR = "Asar"
    MAGRIB = "Magrib"
    ISHA = "Isha"
    NOT_APPLICABLE = "N/A"

class ViolationType(str, Enum):
    ABSENT = "Absent"
    MASBOOQ = "Masbooq"
    NO_CAP = "No Cap"
    LATE_TO_SCHOOL = "Late to School"

# --- Request Models ---

class ViolationCreate(BaseModel):
    """
    Payload for recording one violation. `prayer` may be omitted for
    "Late to School", which is always stored with prayer "N/A".
    """
    student_id: str
    date: date_type
    prayer: Optional[Prayer] = None
    type: ViolationType
    student_name: Optional[str] = Field(
        default=None,
        description="Name snapshot to store on the violation. Defaults to the student's current name."
    )

class ViolationBatchCreate(BaseModel):
    student_ids: List[str] = Field(..., min_length=1)
    date: date_type
    prayer: Optional[Prayer] = None
    type: ViolationType

# --- Response Models ---

class Violation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    student_name: str
    date: str
    prayer: str
    type: str
    fine: int
    created_at: Optional[datetime] = None

class RecordViolationResponse(BaseModel):
    fine: int
    message: str

class BatchFailure(BaseModel):
    student_id: str
    reason: str

class ViolationBatchResult(BaseModel):
    """
    Aggregate outcome of recording one violation for many students. A batch
    never aborts because one member failed.
    """
    recorded: int = 0
    duplicates: int = 0
    errors: int = 0
    failures: List[BatchFailure] = Field(default_factory=list)
    message: str = ""

class ClearResult(BaseModel):
    deleted: int
    message: str

class DeleteViolationResponse(BaseModel):
    fine: int
    message: str

class StudentHistory(BaseModel):
    """A student together with their violations, newest first."""
    student: Student
    violations: List[Violation]

class FineCorrection(BaseModel):
    student_id: str
    student_name: str
    recorded_total: int
    ledger_total: int

class ReconciliationReport(BaseModel):
    checked: int
    corrections: List[FineCorrection] = Field(default_factory=list)
    message: str = ""
