"""
Decoding of the stored ``photo_urls`` column.

Two encodings coexist in the table:

    legacy   ["https://a.jpg", "https://b.jpg"]
    current  [{"originalUrl": "https://a.jpg", "currentUrl": null, "order": 0}, ...]

``decode_photo_urls`` turns the raw column into one of three tagged results so
callers branch on the tag instead of inspecting JSON shapes themselves.
"""

import json
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class PhotoRef:
    original_url: str
    current_url: str | None
    order: int

    def display_url(self) -> str:
        return self.current_url or self.original_url or ""

    def as_dict(self) -> dict:
        return {
            "originalUrl": self.original_url,
            "currentUrl": self.current_url,
            "order": self.order,
        }


@dataclass(frozen=True)
class LegacyPhotos:
    urls: list[str]


@dataclass(frozen=True)
class CurrentPhotos:
    refs: list[PhotoRef]


@dataclass(frozen=True)
class UnrecognizedPhotos:
    reason: str


PhotoEncoding = Union[LegacyPhotos, CurrentPhotos, UnrecognizedPhotos]


def _load(raw) -> list | None:
    if isinstance(raw, list):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, list) else None


def decode_photo_urls(raw) -> PhotoEncoding:
    """
    Classify a stored photo list by its first element.

    Never raises: anything that is not clearly legacy or current comes back as
    ``UnrecognizedPhotos`` so the value is left alone.
    """
    if raw is None:
        return UnrecognizedPhotos("null")

    items = _load(raw)
    if items is None:
        return UnrecognizedPhotos("malformed")
    if not items:
        return UnrecognizedPhotos("empty")

    first = items[0]
    if isinstance(first, str):
        return LegacyPhotos(list(items))

    if isinstance(first, dict) and "originalUrl" in first:
        refs = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                continue
            refs.append(
                PhotoRef(
                    original_url=item.get("originalUrl") or "",
                    current_url=item.get("currentUrl"),
                    order=item.get("order", index),
                )
            )
        return CurrentPhotos(refs)

    return UnrecognizedPhotos("unknown shape")


def display_urls(raw) -> list[str]:
    """Plain list of URLs to show, whatever encoding is stored."""
    decoded = decode_photo_urls(raw)
    if isinstance(decoded, LegacyPhotos):
        return [url for url in decoded.urls if isinstance(url, str) and url]
    if isinstance(decoded, CurrentPhotos):
        return [url for url in (ref.display_url() for ref in decoded.refs) if url]
    return []


def upgrade_legacy(photos: LegacyPhotos) -> CurrentPhotos:
    return CurrentPhotos(
        [PhotoRef(original_url=url, current_url=None, order=index)
         for index, url in enumerate(photos.urls)]
    )


def encode_photo_refs(photos: CurrentPhotos) -> str:
    return json.dumps([ref.as_dict() for ref in photos.refs])
