# /managea/db/base_class.py

from sqlalchemy.orm import declarative_base

# Every ORM model in the project inherits from this Base so that a single
# metadata object knows about all tables (used by create_all and Alembic).
Base = declarative_base()
