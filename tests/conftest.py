# tests/conftest.py
"""Shared fixtures: a throw-away SQLite database per test."""

import os
import sys
import tempfile

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "washdesk-test-logs"))
os.environ["WHATSAPP_API_URL"] = ""
os.environ["WHATSAPP_API_KEY"] = ""

import pytest
from sqlalchemy.orm import sessionmaker
from washdesk.database import build_engine, create_tables


@pytest.fixture
def engine(tmp_path):
    # File-backed so worker threads in the concurrency tests share the data
    eng = build_engine(f"sqlite:///{tmp_path / 'washdesk-test.db'}")
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
