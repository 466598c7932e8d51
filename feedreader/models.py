from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlmodel import SQLModel, Field, Column
from datetime import datetime, timezone


def gen_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id: str = Field(default_factory=lambda: gen_id("usr"), primary_key=True)
    username: str = Field(sa_column=Column(String(length=255), nullable=False))
    email: str = Field(sa_column=Column(String(length=320), nullable=False, index=True))
    password_hash: str = Field(sa_column=Column(String(length=255), nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class Feed(SQLModel, table=True):
    __tablename__ = "feeds"
    __table_args__ = (UniqueConstraint("url", name="uq_feeds_url"),)

    id: str = Field(default_factory=lambda: gen_id("feed"), primary_key=True)
    url: str = Field(sa_column=Column(String(length=2048), nullable=False))
    title: Optional[str] = None
    last_checked: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )


class Folder(SQLModel, table=True):
    __tablename__ = "folders"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_folders_user_name"),
    )

    id: str = Field(default_factory=lambda: gen_id("fld"), primary_key=True)
    user_id: str = Field(
        sa_column=Column(
            String(),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    name: str = Field(sa_column=Column(String(length=255), nullable=False))


class Subscription(SQLModel, table=True):
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "feed_id", name="uq_subscriptions_user_feed"),
    )

    id: str = Field(default_factory=lambda: gen_id("sub"), primary_key=True)
    user_id: str = Field(
        sa_column=Column(
            String(),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    feed_id: str = Field(
        sa_column=Column(
            String(),
            ForeignKey("feeds.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    folder_id: Optional[str] = Field(
        default=None,
        sa_column=Column(
            String(),
            ForeignKey("folders.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
