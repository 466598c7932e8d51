"""Account registration and login."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..errors import (
    BadCredentialsError,
    DuplicateEmailError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..models import User
from .passwords import MAX_PASSWORD_BYTES, hash_password, verify_password
from .tokens import TokenCodec, get_token_codec


logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _require_fields(**fields: Optional[str]) -> None:
    missing = [name for name, value in fields.items() if not value or not str(value).strip()]
    if missing:
        raise ValidationError(
            f"Missing required fields ({', '.join(missing)})",
            details={"missing": missing},
        )


def _validate_password(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == normalize_email(email))
    try:
        return session.exec(stmt).first()
    except SQLAlchemyError as exc:
        raise StorageError("Error checking for existing user", cause=exc) from exc


def register_user(
    session: Session,
    *,
    username: str,
    email: str,
    password: str,
    codec: Optional[TokenCodec] = None,
) -> Tuple[User, str]:
    """Create a user and return it with a freshly issued session token."""

    _require_fields(username=username, email=email, password=password)
    email = normalize_email(email)
    if "@" not in email:
        raise ValidationError("Email address is not valid", details={"field": "email"})
    _validate_password(password)

    if get_user_by_email(session, email) is not None:
        raise DuplicateEmailError()

    codec = codec or get_token_codec()
    user = User(username=username.strip(), email=email, password_hash=hash_password(password))
    session.add(user)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        # Lost a race with a concurrent registration for the same email.
        raise DuplicateEmailError() from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageError("Error adding user to database", cause=exc) from exc
    session.refresh(user)
    logger.info("Registered user %s", user.id)
    return user, codec.issue(user)


def login_user(
    session: Session,
    *,
    email: str,
    password: str,
    codec: Optional[TokenCodec] = None,
) -> Tuple[User, str]:
    _require_fields(email=email, password=password)
    user = get_user_by_email(session, email)
    if user is None:
        raise NotFoundError("No user with this email")
    if not verify_password(password, user.password_hash):
        logger.info("Failed login for user %s", user.id)
        raise BadCredentialsError()
    codec = codec or get_token_codec()
    return user, codec.issue(user)
