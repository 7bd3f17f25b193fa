"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Every test gets its own caller id, so suites sharing the database never see
each other's plans or streaks.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_studytrack.db")

import uuid  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from studytrack.db.base import Base, get_db  # noqa: E402
from studytrack.main import app  # noqa: E402
import studytrack.models  # noqa: E402,F401

SQLITE_URL = os.environ["DATABASE_URL"]

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})


# pysqlite does not emit BEGIN before a SAVEPOINT, so an outermost
# begin_nested() would run outside a transaction and its RELEASE would commit.
# Open the transaction first so an outer rollback undoes the savepoint's work.
@event.listens_for(engine, "savepoint")
def _sqlite_begin_before_savepoint(conn, name):
    if not conn.connection.dbapi_connection.in_transaction:
        conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def user_id() -> str:
    return f"user-{uuid.uuid4().hex[:12]}"


@pytest.fixture()
def headers(user_id) -> dict[str, str]:
    return {"X-User-Id": user_id}
