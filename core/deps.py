from core.config import ASSETS_DIR
from db import SessionLocal


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_assets_root() -> str:
    return ASSETS_DIR
