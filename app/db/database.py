# /app/db/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from .base_class import Base  # noqa: F401

DATABASE_URL = settings.database_url

# The 'check_same_thread' argument is only needed for SQLite.
engine_args = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, **engine_args)

# Each instance of this class is a database session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Creates any missing tables. Importing `base` registers every model."""
    from . import base
    base.Base.metadata.create_all(bind=engine)


# Dependency to get a DB session for the API routers.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
