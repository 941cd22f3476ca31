# /managea/services/exceptions.py


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid. Always raised before touching the store."""


class NotFoundError(DomainError):
    """Raised when a referenced class, student or violation does not exist."""


class DuplicateViolation(DomainError):
    """Raised when a violation with the same (student, date, prayer, type) already exists."""

    def __init__(self, student_id: str, date: str, prayer: str, violation_type: str):
        self.student_id = student_id
        self.date = date
        self.prayer = prayer
        self.violation_type = violation_type
        super().__init__(
            "Duplicate: This violation has already been recorded for this student on this date."
        )


class StoreError(DomainError):
    """Raised when the database fails (connection, permission, constraint). Never retried."""
