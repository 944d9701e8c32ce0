from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.deps import get_db
from db import Base
from main import app
from models import ShopSession, Submission

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def override_db(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db


def broken_db(error: Exception | None = None):
    db = MagicMock()
    db.query.side_effect = error or RuntimeError("database unavailable")
    return db


def override_broken_db():
    app.dependency_overrides[get_db] = lambda: broken_db()


def make_client(**kwargs) -> TestClient:
    return TestClient(app, **kwargs)


def reset_overrides():
    app.dependency_overrides.clear()


def add_submission(db, minutes: int = 0, **fields) -> Submission:
    values = {
        "shop": "demo.myshopify.com",
        "status": "published",
        "short_title": "In memory",
        "victim_name": "Alex",
        "road_user_type": "Cyclist",
        "state": "Texas",
        "gender": "Female",
        "injury_type": "Fatal",
        "age": 34,
        "incident_date": "2023-05-14",
        "victim_story": "A story.",
        "submitter_name": "Sam",
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    values.update(fields)
    submission = Submission(**values)
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def add_session(db, session_id: str, shop: str) -> ShopSession:
    record = ShopSession(id=session_id, shop=shop, access_token="shpat_test", scope="read_content")
    db.add(record)
    db.commit()
    return record
