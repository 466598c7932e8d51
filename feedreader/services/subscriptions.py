"""Feeds, subscriptions and folders, reconciled idempotently.

Feeds are shared between users and keyed by URL. ``upsert_feed`` and
``subscribe`` rely on the database unique constraints plus
``INSERT ... ON CONFLICT`` so that concurrent submissions of the same URL or
the same ``(user, feed)`` pair never produce duplicate rows. No in-process
locking is involved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..errors import ConflictError, FeedReaderError, NotFoundError, StorageError, ValidationError
from ..models import Feed, Folder, Subscription, gen_id, utcnow
from .discovery import FeedLinkCandidate


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionView:
    id: str
    feed_id: str
    folder_id: Optional[str]
    title: Optional[str]
    url: str
    last_checked: Optional[datetime] = None


@dataclass(frozen=True)
class BatchFailure:
    candidate: FeedLinkCandidate
    message: str


@dataclass
class BatchResult:
    """Outcome of :meth:`SubscriptionStore.add_subscriptions`.

    ``subscribed`` rows are committed. When ``failure`` is set the batch stopped
    at that candidate and ``not_attempted`` lists what was left.
    """

    subscribed: List[SubscriptionView] = field(default_factory=list)
    failure: Optional[BatchFailure] = None
    not_attempted: List[FeedLinkCandidate] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.failure is None


class SubscriptionStore:
    def __init__(self, session: Session):
        self.session = session

    def _insert(self, model: Any):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(model)
        if dialect == "sqlite":
            return sqlite.insert(model)
        raise StorageError(f"Upsert is not supported on the {dialect!r} backend")

    def _fail(self, message: str, exc: SQLAlchemyError) -> StorageError:
        self.session.rollback()
        logger.error("%s: %s", message, exc)
        return StorageError(message, cause=exc)

    # feeds

    def upsert_feed(self, url: str, title: Optional[str]) -> str:
        """Insert the feed or update the title of the existing row; return its id."""

        if not url or not url.strip():
            raise ValidationError("Feed url is required", details={"field": "url"})
        stmt = self._insert(Feed).values(id=gen_id("feed"), url=url.strip(), title=title)
        stmt = stmt.on_conflict_do_update(
            index_elements=["url"],
            set_={"title": stmt.excluded.title},
        ).returning(Feed.id)
        try:
            feed_id = self.session.exec(stmt).scalar_one()
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail(f"Error saving feed {url}", exc) from exc
        return feed_id

    def touch_feed(self, url: str, checked_at: Optional[datetime] = None) -> bool:
        """Record a fetch time on the stored feed with ``url``; ``False`` if unknown."""

        stmt = update(Feed).where(Feed.url == url).values(last_checked=checked_at or utcnow())
        try:
            result = self.session.exec(stmt)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail(f"Error updating last_checked for {url}", exc) from exc
        return bool(result.rowcount)

    # subscriptions

    def _require_folder(self, folder_id: str, user_id: str) -> Folder:
        folder = self.session.get(Folder, folder_id)
        if folder is None or folder.user_id != user_id:
            raise NotFoundError("Folder not found", details={"folder_id": folder_id})
        return folder

    def _view(self, subscription_id: str, user_id: str) -> SubscriptionView:
        stmt = (
            select(Subscription, Feed)
            .join(Feed, Feed.id == Subscription.feed_id)
            .where(Subscription.id == subscription_id, Subscription.user_id == user_id)
        )
        row = self.session.exec(stmt).first()
        if row is None:
            raise NotFoundError("Subscription not found", details={"subscription_id": subscription_id})
        return _to_view(*row)

    def subscribe(self, user_id: str, feed_id: str, folder_id: Optional[str] = None) -> SubscriptionView:
        """Subscribe ``user_id`` to ``feed_id``.

        Subscribing twice returns the existing subscription unchanged, including
        its folder.
        """

        if self.session.get(Feed, feed_id) is None:
            raise NotFoundError("Feed not found", details={"feed_id": feed_id})
        if folder_id is not None:
            self._require_folder(folder_id, user_id)

        stmt = (
            self._insert(Subscription)
            .values(
                id=gen_id("sub"),
                user_id=user_id,
                feed_id=feed_id,
                folder_id=folder_id,
                created_at=utcnow(),
            )
            .on_conflict_do_nothing(index_elements=["user_id", "feed_id"])
        )
        try:
            self.session.exec(stmt)
            self.session.commit()
        except SQLAlchemyError as exc:
            # e.g. a foreign key failure when the user row was deleted meanwhile
            raise self._fail("Error adding subscription to database", exc) from exc

        existing = self.session.exec(
            select(Subscription.id).where(
                Subscription.user_id == user_id,
                Subscription.feed_id == feed_id,
            )
        ).first()
        if existing is None:
            raise StorageError("Subscription vanished after insert")
        return self._view(existing, user_id)

    def list_for_user(self, user_id: str, folder_id: Optional[str] = None) -> List[SubscriptionView]:
        stmt = (
            select(Subscription, Feed)
            .join(Feed, Feed.id == Subscription.feed_id)
            .where(Subscription.user_id == user_id)
        )
        if folder_id is not None:
            stmt = stmt.where(Subscription.folder_id == folder_id)
        stmt = stmt.order_by(Feed.title, Subscription.id)
        try:
            rows = self.session.exec(stmt).all()
        except SQLAlchemyError as exc:
            raise self._fail(f"Error getting subscriptions for user {user_id}", exc) from exc
        return [_to_view(subscription, feed) for subscription, feed in rows]

    def unsubscribe(self, ids: Iterable[str], user_id: str) -> List[str]:
        """Delete the caller's subscriptions among ``ids``; return the ids removed.

        Ids that are unknown or belong to another user are ignored.
        """

        wanted = sorted({str(value) for value in ids if value})
        if not wanted:
            return []
        stmt = (
            delete(Subscription)
            .where(Subscription.id.in_(wanted), Subscription.user_id == user_id)
            .returning(Subscription.id)
        )
        try:
            deleted = list(self.session.exec(stmt).scalars().all())
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("Error deleting subscriptions", exc) from exc
        if len(deleted) != len(wanted):
            logger.info(
                "Ignored %d subscription id(s) not owned by user %s",
                len(wanted) - len(deleted),
                user_id,
            )
        return sorted(deleted)

    def add_subscriptions(
        self,
        user_id: str,
        candidates: Sequence[FeedLinkCandidate],
        folder_id: Optional[str] = None,
    ) -> BatchResult:
        """Upsert each candidate feed and subscribe the user to it.

        Items commit one by one. The first failing item stops the batch; the
        result says which candidates were committed and which were not tried.
        """

        if folder_id is not None:
            self._require_folder(folder_id, user_id)

        result = BatchResult()
        for index, candidate in enumerate(candidates):
            try:
                feed_id = self.upsert_feed(candidate.href, candidate.title or None)
                result.subscribed.append(self.subscribe(user_id, feed_id, folder_id))
            except FeedReaderError as exc:
                logger.warning(
                    "Stopped adding subscriptions for user %s at %s after %d committed",
                    user_id,
                    candidate.href,
                    len(result.subscribed),
                )
                result.failure = BatchFailure(candidate=candidate, message=exc.message)
                result.not_attempted = list(candidates[index + 1:])
                break
        return result

    # folders

    def create_folder(self, user_id: str, name: str) -> Folder:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Folder name is required", details={"field": "name"})
        folder = Folder(user_id=user_id, name=cleaned)
        self.session.add(folder)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError("A folder with this name already exists", details={"name": cleaned}) from exc
        except SQLAlchemyError as exc:
            raise self._fail("Error creating folder", exc) from exc
        self.session.refresh(folder)
        return folder

    def list_folders(self, user_id: str) -> List[Folder]:
        stmt = select(Folder).where(Folder.user_id == user_id).order_by(Folder.name, Folder.id)
        try:
            return list(self.session.exec(stmt).all())
        except SQLAlchemyError as exc:
            raise self._fail(f"Error getting folders for user {user_id}", exc) from exc

    def delete_folder(self, folder_id: str, user_id: str) -> None:
        """Delete a folder; its subscriptions stay, moved out of any folder."""

        folder = self._require_folder(folder_id, user_id)
        try:
            self.session.exec(
                update(Subscription)
                .where(Subscription.folder_id == folder.id, Subscription.user_id == user_id)
                .values(folder_id=None)
            )
            self.session.delete(folder)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("Error deleting folder", exc) from exc


def _to_view(subscription: Subscription, feed: Feed) -> SubscriptionView:
    return SubscriptionView(
        id=subscription.id,
        feed_id=feed.id,
        folder_id=subscription.folder_id,
        title=feed.title,
        url=feed.url,
        last_checked=feed.last_checked,
    )
