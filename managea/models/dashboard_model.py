# /managea/models/dashboard_model.py

# --- Core Imports ---
from pydantic import BaseModel, Field
from typing import List

# --- Model Definitions ---

class CountEntry(BaseModel):
    label: str
    count: int

class TopFineEntry(BaseModel):
    student_id: str
    name: str
    room: str
    class_name: str
    total_fine: int

class DashboardSummary(BaseModel):
    """
    Defines the data contract for the response of the dashboard summary endpoint.
    Every figure is a projection of the current student and violation records;
    nothing here is stored.
    """

    classCount: int = Field(
        ...,
        description="The total number of classes.",
        examples=[4]
    )

    studentCount: int = Field(
        ...,
        description="The total number of students across all classes.",
        examples=[112]
    )

    totalFines: int = Field(
        ...,
        description="Sum of every student's running fine total.",
        examples=[1250]
    )

    totalViolations: int = Field(..., examples=[37])

    todayViolations: int = Field(
        ...,
        description="Violations whose date equals today's calendar date.",
        examples=[3]
    )

    lateToSchoolCount: int = Field(..., examples=[5])

    # Always lists the five prayers in their display order, zero counts included.
    prayerCounts: List[CountEntry]

    # Sorted by count, highest first. Only types that occur are listed.
    typeCounts: List[CountEntry]

    topFines: List[TopFineEntry]
