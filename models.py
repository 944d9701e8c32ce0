from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text
from sqlalchemy.sql import func
from db import Base
import uuid


SUBMISSION_STATUSES = ("draft", "pending", "published", "rejected")


def _new_id() -> str:
    return str(uuid.uuid4())


class ShopSession(Base):
    __tablename__ = "shopify_sessions"

    id = Column(String, primary_key=True)
    shop = Column(String, nullable=False, index=True)
    state = Column(String, nullable=True)
    is_online = Column(Boolean, default=False)
    scope = Column(String, nullable=True)
    expires = Column(DateTime(timezone=True), nullable=True)
    access_token = Column(String, nullable=False)


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(String, primary_key=True, default=_new_id)
    shop = Column(String, nullable=False, default="public", index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)

    short_title = Column(String(200), nullable=False)
    victim_name = Column(String(200), nullable=True)
    relation = Column(String(100), nullable=True)
    submitter_name = Column(String(200), nullable=True)
    submitter_email = Column(String(320), nullable=True, index=True)

    road_user_type = Column(String(50))
    state = Column(String(50))
    zip_code = Column(String(10), nullable=True)
    gender = Column(String(50), nullable=True)
    injury_type = Column(String(50), nullable=True)
    age = Column(Integer, nullable=True)
    # kept as entered on the intake form, e.g. "2023-05-14"
    incident_date = Column(String(40))

    victim_story = Column(Text)
    photo_urls = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    published_at = Column(DateTime(timezone=True), nullable=True)
