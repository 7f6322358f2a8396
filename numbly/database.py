"""
Database engine, session factory and declarative base
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from numbly.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def enable_sqlite_foreign_keys(target_engine):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection"""
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)


def init_db(bind=None):
    """Create all tables"""
    import numbly.models  # noqa: F401 - register models on Base.metadata

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """FastAPI dependency yielding a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
