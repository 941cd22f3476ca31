# /managea/db/base.py

# This file acts as a central registry for all our SQLAlchemy models.
# By importing them all here, we ensure that the Base class knows about them
# when Alembic runs its auto-generation scan.

from .base_class import Base

from .models.class_student_models import Class, Student
from .models.violation_models import Violation
