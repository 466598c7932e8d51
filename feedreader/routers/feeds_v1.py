from typing import List

from fastapi import APIRouter, Depends, Query

from ..auth.gate import Identity, get_current_identity
from ..db import get_session_ctx
from ..errors import NoFeedsFoundError
from ..schemas import FeedContentOut, FeedLinkCandidateOut
from ..services.discovery import discover_feeds
from ..services.fetcher import fetch_feed
from ..services.subscriptions import SubscriptionStore


router = APIRouter(prefix="/v1/feeds", tags=["v1", "feeds"])


@router.get(
    "/discover",
    response_model=List[FeedLinkCandidateOut],
    summary="Discover feeds advertised by a web page",
)
def discover_feeds_v1(
    url: str = Query(..., description="Page to scan for RSS/Atom links"),
    identity: Identity = Depends(get_current_identity),
):
    candidates = discover_feeds(url)
    if not candidates:
        raise NoFeedsFoundError(details={"url": url})
    return [FeedLinkCandidateOut.model_validate(candidate) for candidate in candidates]


@router.get(
    "/content",
    response_model=FeedContentOut,
    summary="Fetch and parse a feed",
)
def fetch_feed_content_v1(
    url: str = Query(..., description="Feed URL"),
    identity: Identity = Depends(get_current_identity),
):
    content = fetch_feed(url)
    # a session is opened only after the remote fetch has finished
    with get_session_ctx() as session:
        SubscriptionStore(session).touch_feed(content.url)
    return FeedContentOut.model_validate(content)
