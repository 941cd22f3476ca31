# /managea/db/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ..config import DATABASE_URL

# Create the SQLAlchemy engine.
# The 'check_same_thread' argument is only needed for SQLite.
engine_args = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, **engine_args)

# Create a SessionLocal class. Each instance of this class will be a database session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Creates any missing tables. Alembic owns real schema changes."""
    # Importing the registry makes sure every model is attached to Base.metadata.
    from .base import Base
    Base.metadata.create_all(bind=engine)


# Dependency to get a DB session. This will be used in our API routers.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
