# /managea/services/fine_table.py

"""Static fine amounts per violation type and the ordered list of prayers."""

from typing import Dict, Tuple

ABSENT = "Absent"
MASBOOQ = "Masbooq"
NO_CAP = "No Cap"
LATE_TO_SCHOOL = "Late to School"

# Sentinel used in the prayer field of violations that are not tied to a prayer.
NOT_APPLICABLE = "N/A"

FINE_MAP: Dict[str, int] = {
    ABSENT: 50,
    MASBOOQ: 25,
    NO_CAP: 25,
    LATE_TO_SCHOOL: 25,
}

# Display order only.
PRAYERS: Tuple[str, ...] = ("Subh", "Luhar", "Asar", "Magrib", "Isha")

PRAYER_VIOLATION_TYPES: Tuple[str, ...] = (ABSENT, MASBOOQ, NO_CAP)
NON_PRAYER_VIOLATION_TYPES: Tuple[str, ...] = (LATE_TO_SCHOOL,)
VIOLATION_TYPES: Tuple[str, ...] = PRAYER_VIOLATION_TYPES + NON_PRAYER_VIOLATION_TYPES


def fine_for(violation_type: str) -> int:
    """Returns the fine for a violation type, or 0 if the type is unknown."""
    return FINE_MAP.get(violation_type, 0)


def is_prayer_violation(violation_type: str) -> bool:
    return violation_type in PRAYER_VIOLATION_TYPES
