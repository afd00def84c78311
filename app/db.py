# app/db.py
"""Database engine and session utilities.

The engine is the storage handle for the importer. It is built once by the
process that owns it (`app.main` at startup, `run_import.py` on the command
line) and handed to the code that needs it; nothing connects at import time.
"""
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import Settings

Base = declarative_base()


def create_db_engine(settings: Settings) -> Engine:
    # tuned pool settings for cloud DB
    return create_engine(
        settings.database_url,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_pre_ping=True
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
