"""Find the RSS/Atom feeds a web page advertises through ``<link>`` elements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..config import get_discovery_max_nodes
from ..errors import FetchError
from ..observability.metrics import increment_feed_discovery
from .http import http_get, validate_remote_url


logger = logging.getLogger(__name__)

_FEED_TYPE_MARKERS = ("rss", "atom")
_HTML_ACCEPT = "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"


@dataclass(frozen=True)
class FeedLinkCandidate:
    title: str
    href: str


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def is_feed_link(tag: Tag) -> bool:
    """Return ``True`` for ``<link rel="alternate">`` tags with an RSS/Atom type."""

    if tag.name != "link":
        return False
    if _attr(tag, "rel").strip().lower() != "alternate":
        return False
    link_type = _attr(tag, "type").lower()
    return any(marker in link_type for marker in _FEED_TYPE_MARKERS)


def find_feed_links(document: Tag, max_nodes: Optional[int] = None) -> List[FeedLinkCandidate]:
    """Walk ``document`` depth-first in document order and collect feed links.

    Every element is visited, not just ``<head>``. Repeated links are kept.
    The walk stops after ``max_nodes`` elements and returns what it found so far.
    """

    limit = max_nodes if max_nodes is not None else get_discovery_max_nodes()
    candidates: List[FeedLinkCandidate] = []
    stack: List[Tag] = [document]
    visited = 0
    while stack:
        node = stack.pop()
        visited += 1
        if visited > limit:
            logger.warning("Feed discovery stopped after visiting %d elements", limit)
            break
        if is_feed_link(node):
            candidates.append(FeedLinkCandidate(title=_attr(node, "title"), href=_attr(node, "href")))
        # push children reversed so the first child is popped first (pre-order)
        children = [child for child in node.children if isinstance(child, Tag)]
        stack.extend(reversed(children))
    return candidates


def parse_html(markup: str | bytes) -> BeautifulSoup:
    # multi_valued_attributes=None keeps rel="alternate" as a plain string
    return BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)


def extract_feed_links(markup: str | bytes, max_nodes: Optional[int] = None) -> List[FeedLinkCandidate]:
    return find_feed_links(parse_html(markup), max_nodes=max_nodes)


def discover_feeds(url: str) -> List[FeedLinkCandidate]:
    """Fetch the page at ``url`` and return its advertised feeds.

    Relative ``href`` values are resolved against the final page URL. An empty
    list means the page advertises no feeds; callers report that separately.
    """

    page_url = validate_remote_url(url)
    try:
        response = http_get(page_url, accept=_HTML_ACCEPT)
    except FetchError:
        increment_feed_discovery("fetch_error")
        raise

    base_url = response.url or page_url
    found = extract_feed_links(response.content)
    candidates = [
        FeedLinkCandidate(title=candidate.title, href=urljoin(base_url, candidate.href))
        for candidate in found
        if candidate.href.strip()
    ]
    increment_feed_discovery("found" if candidates else "empty")
    logger.info("Discovered %d feed link(s) on %s", len(candidates), page_url)
    return candidates
