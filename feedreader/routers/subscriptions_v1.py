from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from ..auth.gate import Identity, get_current_identity
from ..db import get_session_ctx, get_session
from ..errors import NoFeedsFoundError, ValidationError
from ..schemas import (
    AddSubscriptionsOut,
    AddSubscriptionsRequest,
    BatchFailureOut,
    DeleteSubscriptionsOut,
    FeedLinkCandidateOut,
    SubscribeFromPageRequest,
    SubscriptionOut,
)
from ..services.discovery import FeedLinkCandidate, discover_feeds
from ..services.subscriptions import BatchResult, SubscriptionStore


router = APIRouter(prefix="/v1/subscriptions", tags=["v1", "subscriptions"])


def _batch_response(result: BatchResult) -> JSONResponse:
    payload = AddSubscriptionsOut(
        subscriptions=[SubscriptionOut.model_validate(view) for view in result.subscribed],
        failure=(
            BatchFailureOut(
                candidate=FeedLinkCandidateOut.model_validate(result.failure.candidate),
                message=result.failure.message,
            )
            if result.failure
            else None
        ),
        not_attempted=[FeedLinkCandidateOut.model_validate(c) for c in result.not_attempted],
    )
    # 207 tells the client that some candidates were committed and some were not
    status_code = status.HTTP_201_CREATED if result.complete else status.HTTP_207_MULTI_STATUS
    return JSONResponse(payload.model_dump(mode="json"), status_code=status_code)


@router.get("", response_model=List[SubscriptionOut], summary="List subscriptions")
def list_subscriptions_v1(
    folder_id: Optional[str] = Query(None),
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    views = SubscriptionStore(session).list_for_user(identity.user_id, folder_id=folder_id)
    return [SubscriptionOut.model_validate(view) for view in views]


@router.post(
    "",
    response_model=AddSubscriptionsOut,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to feed candidates",
    responses={207: {"model": AddSubscriptionsOut, "description": "Partially applied"}},
)
def add_subscriptions_v1(
    body: AddSubscriptionsRequest,
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    candidates = [FeedLinkCandidate(title=c.title, href=c.href) for c in body.candidates]
    result = SubscriptionStore(session).add_subscriptions(
        identity.user_id,
        candidates,
        folder_id=body.folder_id,
    )
    return _batch_response(result)


@router.post(
    "/from-page",
    response_model=AddSubscriptionsOut,
    status_code=status.HTTP_201_CREATED,
    summary="Discover a page's feeds and subscribe to all of them",
    responses={207: {"model": AddSubscriptionsOut, "description": "Partially applied"}},
)
def subscribe_from_page_v1(
    body: SubscribeFromPageRequest,
    identity: Identity = Depends(get_current_identity),
):
    candidates = discover_feeds(body.url)
    if not candidates:
        raise NoFeedsFoundError(details={"url": body.url})
    with get_session_ctx() as session:
        result = SubscriptionStore(session).add_subscriptions(
            identity.user_id,
            candidates,
            folder_id=body.folder_id,
        )
    return _batch_response(result)


@router.delete("", response_model=DeleteSubscriptionsOut, summary="Delete subscriptions")
def delete_subscriptions_v1(
    ids: List[str] = Query(..., description="Subscription ids. Repeat the parameter for multiple ids."),
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session),
):
    cleaned = [value.strip() for value in ids if value and value.strip()]
    if not cleaned:
        raise ValidationError("At least one subscription id is required", details={"field": "ids"})
    deleted = SubscriptionStore(session).unsubscribe(cleaned, identity.user_id)
    return DeleteSubscriptionsOut(deleted_ids=deleted)
