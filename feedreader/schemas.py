from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserOut


class FeedLinkCandidateIn(BaseModel):
    title: str = ""
    href: str = Field(..., min_length=1)

    @field_validator("href")
    @classmethod
    def _strip_href(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("href must not be blank")
        return cleaned


class FeedLinkCandidateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    href: str


class AddSubscriptionsRequest(BaseModel):
    candidates: List[FeedLinkCandidateIn] = Field(..., min_length=1)
    folder_id: Optional[str] = None


class SubscribeFromPageRequest(BaseModel):
    url: str = Field(..., min_length=1)
    folder_id: Optional[str] = None


class SubscriptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    feed_id: str
    folder_id: Optional[str] = None
    title: Optional[str] = None
    url: str
    last_checked: Optional[datetime] = None


class BatchFailureOut(BaseModel):
    candidate: FeedLinkCandidateOut
    message: str


class AddSubscriptionsOut(BaseModel):
    subscriptions: List[SubscriptionOut]
    failure: Optional[BatchFailureOut] = None
    not_attempted: List[FeedLinkCandidateOut] = Field(default_factory=list)


class DeleteSubscriptionsOut(BaseModel):
    deleted_ids: List[str]


class FolderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class FolderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class FeedItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str = ""
    link: Optional[str] = None
    content: str = ""
    description: str = ""
    published: Optional[datetime] = None


class FeedContentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str
    title: str = ""
    description: str = ""
    items: List[FeedItemOut] = Field(default_factory=list)


class StatusResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
