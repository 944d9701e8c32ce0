from dataclasses import dataclass, field

from dateutil.parser import isoparse
from sqlalchemy.orm import Session

from models import Submission
from services.photos import display_urls


FATAL = "Fatal"
NON_FATAL = "Non-fatal"


@dataclass
class StoryFilters:
    road_user_type: list[str] = field(default_factory=list)
    age_range: list[str] = field(default_factory=list)
    gender: list[str] = field(default_factory=list)
    injury_type: str | None = None
    state: list[str] = field(default_factory=list)
    year: list[str] = field(default_factory=list)
    limit: int = 100
    offset: int = 0


def incident_year(incident_date) -> str | None:
    if not incident_date:
        return None
    try:
        return str(isoparse(str(incident_date).strip()).year)
    except (ValueError, OverflowError):
        return None


def to_story(sub: Submission) -> dict:
    return {
        "id": sub.id,
        "title": sub.short_title,
        "victimName": sub.victim_name,
        "category": sub.road_user_type,
        "state": sub.state,
        "date": sub.incident_date,
        "status": sub.status,
        "age": sub.age,
        "gender": sub.gender,
        "injuryType": sub.injury_type,
        "year": incident_year(sub.incident_date),
        "images": display_urls(sub.photo_urls),
        "description": sub.victim_story,
        "relation": sub.relation,
        "submitterName": sub.submitter_name,
    }


def parse_age_range(range_str: str) -> tuple[int, float] | None:
    """
    "18-30" -> (18, 30), "60+" -> (60, inf). Anything else -> None.
    """
    text = (range_str or "").strip()
    try:
        if text.endswith("+"):
            return int(text[:-1]), float("inf")
        low, high = text.split("-", 1)
        return int(low), int(high)
    except ValueError:
        return None


def age_in_range(age: int, range_str: str) -> bool:
    bounds = parse_age_range(range_str)
    if bounds is None:
        return False
    low, high = bounds
    return low <= age <= high


def apply_filters(stories: list[dict], filters: StoryFilters) -> list[dict]:
    if filters.road_user_type:
        stories = [s for s in stories if s["category"] in filters.road_user_type]

    if filters.age_range:
        stories = [
            s for s in stories
            if s["age"] is not None
            and any(age_in_range(s["age"], r) for r in filters.age_range)
        ]

    if filters.gender:
        stories = [s for s in stories if s["gender"] in filters.gender]

    if filters.injury_type:
        stories = [s for s in stories if s["injuryType"] == filters.injury_type]

    if filters.state:
        stories = [s for s in stories if s["state"] in filters.state]

    if filters.year:
        stories = [s for s in stories if s["year"] in filters.year]

    return stories


def compute_stats(stories: list[dict]) -> dict:
    return {
        "total": len(stories),
        "livesStolen": sum(1 for s in stories if s["injuryType"] == FATAL),
        "livesShattered": sum(1 for s in stories if s["injuryType"] == NON_FATAL),
    }


def empty_stats() -> dict:
    return {"total": 0, "livesStolen": 0, "livesShattered": 0}


def fetch_published(database: Session, limit: int, offset: int) -> list[Submission]:
    return (
        database.query(Submission)
        .filter(Submission.status == "published")
        .order_by(Submission.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def query_stories(database: Session, filters: StoryFilters) -> dict:
    """
    Fetch a page of published submissions, then narrow it in memory.

    The page is cut before the filters run, so a page can come back shorter
    than ``limit`` even when more matching rows exist further on.
    """
    rows = fetch_published(database, filters.limit, filters.offset)
    stories = apply_filters([to_story(row) for row in rows], filters)
    return {"stories": stories, "stats": compute_stats(stories)}


def get_story(database: Session, story_id: str) -> dict | None:
    submission = database.query(Submission).filter(Submission.id == story_id).first()
    if not submission:
        return None
    return to_story(submission)
