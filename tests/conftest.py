import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["QUIZ_SIZE"] = "6"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from main import app
from storage import DatabaseStorage

PASSWORD = "correct-horse-battery"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(db):
    return DatabaseStorage(db)


@pytest.fixture
def seed(session_factory):
    """Run a callback against a short-lived storage and commit it"""

    def run(callback):
        session = session_factory()
        try:
            result = callback(DatabaseStorage(session))
            session.commit()
            return result
        finally:
            session.close()

    return run


@pytest.fixture
def make_client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    def make(email=None, password=PASSWORD):
        client = TestClient(app)
        if email:
            response = client.post("/api/auth/login", json={"email": email, "password": password})
            assert response.status_code == 200, response.text
        return client

    yield make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def admin_client(make_client):
    return make_client("admin@example.com")


@pytest.fixture
def learner_client(make_client):
    return make_client("learner@example.com")


def add_questions(storage, count, correct_answer="A", topic_id=None):
    ids = []
    for n in range(count):
        item = storage.create_content_item(
            type="question",
            topic_id=topic_id,
            title=f"Question {n}",
            body=f"Body {n}",
            options=["one", "two", "three", "four"],
            correct_answer=correct_answer,
            explanation=f"Explanation {n}",
        )
        ids.append(item.id)
    return ids
