"""Fetch a syndication feed and normalize it with :mod:`feedparser`."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser

from ..errors import FetchError
from ..observability.metrics import increment_feed_fetch
from .http import http_get, validate_remote_url


logger = logging.getLogger(__name__)

_FEED_ACCEPT = (
    "application/rss+xml, application/atom+xml, application/rdf+xml;q=0.9, "
    "application/xml;q=0.8, text/xml;q=0.8, */*;q=0.5"
)


class FeedFetchError(FetchError):
    """Raised when a feed cannot be retrieved or parsed. ``cause`` holds the origin."""

    default_message = "Unable to fetch feed"


@dataclass
class FeedItem:
    title: str = ""
    link: Optional[str] = None
    content: str = ""
    description: str = ""
    published: Optional[datetime] = None


@dataclass
class FeedContent:
    url: str
    title: str = ""
    description: str = ""
    items: List[FeedItem] = field(default_factory=list)


def _struct_to_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _entry_content(entry: Any) -> str:
    contents = entry.get("content") or []
    for item in contents:
        value = item.get("value") if hasattr(item, "get") else None
        if value:
            return value
    return ""


def _normalize_entry(entry: Any) -> FeedItem:
    return FeedItem(
        title=entry.get("title") or "",
        link=entry.get("link"),
        content=_entry_content(entry),
        description=entry.get("summary") or entry.get("description") or "",
        published=_struct_to_datetime(entry.get("published_parsed") or entry.get("updated_parsed")),
    )


def parse_feed(url: str, document: bytes | str) -> FeedContent:
    """Normalize a raw feed document; raise :class:`FeedFetchError` if it is unusable."""

    parsed = feedparser.parse(document)
    meta = parsed.get("feed") or {}
    entries = parsed.get("entries") or []
    if parsed.get("bozo") and not entries and not meta.get("title"):
        cause = parsed.get("bozo_exception")
        raise FeedFetchError(url, f"Malformed feed at {url}", cause=cause)

    return FeedContent(
        url=url,
        title=meta.get("title") or "",
        description=meta.get("subtitle") or meta.get("description") or "",
        items=[_normalize_entry(entry) for entry in entries],
    )


def fetch_feed(url: str) -> FeedContent:
    """Retrieve ``url`` and return its normalized contents. No caching, no retry."""

    feed_url = validate_remote_url(url)
    try:
        response = http_get(feed_url, accept=_FEED_ACCEPT, error_cls=FeedFetchError)
        content = parse_feed(feed_url, response.content)
    except FeedFetchError:
        increment_feed_fetch("error")
        raise
    increment_feed_fetch("ok")
    logger.info("Fetched feed %s with %d item(s)", feed_url, len(content.items))
    return content
