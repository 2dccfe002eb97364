"""
Database engine and session factory for the reference persistence layer.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from progress_engine.config import get_database_url

DATABASE_URL = get_database_url()

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create all tables (imports models so they register with Base)"""
    from progress_engine import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Yield a session and always close it afterwards"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
