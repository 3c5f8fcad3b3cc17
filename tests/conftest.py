import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from field_engine.main import app
from field_engine.db.base import Base
from field_engine.db.record_store import InMemoryRecordStore, SqlAlchemyRecordStore
from field_engine.db.session import enable_sqlite_savepoints, get_db


@pytest.fixture()
def store():
    return InMemoryRecordStore()


@pytest.fixture()
def db_session():
    """
    Fresh in-memory SQLite database per test. StaticPool keeps the single
    connection alive so the TestClient worker thread sees the same data.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def sql_store(db_session):
    return SqlAlchemyRecordStore(db_session)


@pytest.fixture()
def client(db_session):
    def _get_db_override():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = _get_db_override
    yield TestClient(app)
    app.dependency_overrides.clear()
