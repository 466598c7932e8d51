"""Account registration and login."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..auth.tokens import get_token_codec
from ..auth.users import login_user, register_user
from ..db import get_session
from ..models import User
from ..schemas import LoginRequest, RegisterRequest, TokenOut, UserOut


router = APIRouter(prefix="/v1/auth", tags=["v1", "auth"])


def _token_out(user: User, token: str) -> TokenOut:
    claims = get_token_codec().verify(token)
    return TokenOut(
        access_token=token,
        expires_at=claims.expires_at,
        user=UserOut.model_validate(user),
    )


@router.post(
    "/register",
    response_model=TokenOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
)
def register(body: RegisterRequest, session: Session = Depends(get_session)):
    user, token = register_user(
        session,
        username=body.username,
        email=body.email,
        password=body.password,
    )
    return _token_out(user, token)


@router.post("/login", response_model=TokenOut, summary="Log in")
def login(body: LoginRequest, session: Session = Depends(get_session)):
    user, token = login_user(session, email=body.email, password=body.password)
    return _token_out(user, token)
