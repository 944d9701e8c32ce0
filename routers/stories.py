import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.deps import get_db
from services.assets import CORS_HEADERS
from services.stories import StoryFilters, empty_stats, get_story, query_stories

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stories", tags=["stories"])

DEFAULT_LIMIT = 100
DEFAULT_OFFSET = 0


def cors_json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


def error_json(message: str, status_code: int, code: str) -> JSONResponse:
    return cors_json({"error": message, "code": code, "success": False}, status_code)


def page_param(value: str | None, default: int) -> int:
    """Lenient int parse for limit/offset; bad or negative values fall back to the default."""
    try:
        parsed = int((value or "").strip())
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def preflight() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


@router.options("")
def stories_preflight():
    return preflight()


@router.get("")
def list_stories(
    road_user_type: Annotated[list[str], Query(alias="roadUserType")] = [],
    age_range: Annotated[list[str], Query(alias="ageRange")] = [],
    gender: Annotated[list[str], Query()] = [],
    injury_type: Annotated[str | None, Query(alias="injuryType")] = None,
    state: Annotated[list[str], Query()] = [],
    year: Annotated[list[str], Query()] = [],
    limit: str | None = None,
    offset: str | None = None,
    db: Session = Depends(get_db),
):
    filters = StoryFilters(
        road_user_type=list(road_user_type),
        age_range=list(age_range),
        gender=list(gender),
        injury_type=injury_type,
        state=list(state),
        year=list(year),
        limit=page_param(limit, DEFAULT_LIMIT),
        offset=page_param(offset, DEFAULT_OFFSET),
    )

    try:
        result = query_stories(db, filters)
    except Exception:
        logger.exception("Error fetching stories")
        return cors_json(
            {"error": "Failed to fetch stories", "stories": [], "stats": empty_stats()},
            status_code=500,
        )

    return cors_json(result)


@router.options("/{story_id}")
def story_preflight(story_id: str):
    return preflight()


@router.get("/{story_id}")
def story_detail(story_id: str, db: Session = Depends(get_db)):
    try:
        story = get_story(db, story_id)
    except Exception:
        logger.exception("Error fetching story %s", story_id)
        return error_json("Failed to fetch story", 500, "FETCH_ERROR")

    if story is None:
        return error_json("Story not found", 404, "NOT_FOUND")

    return cors_json({"story": story})
