"""Login and logout routes."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from translation_service.auth import (
    CurrentUser,
    Message,
    SessionDep,
    Token,
    TokenDep,
    authenticate,
    revoke_token,
)
from translation_service.core.logging import get_logger
from translation_service.core.rate_limit import AUTH_RATE_LIMIT, limiter
from translation_service.core.security import create_access_token, decode_token

router = APIRouter()
logger = get_logger(__name__)


@router.post("/login", response_model=Token)
@limiter.limit(AUTH_RATE_LIMIT)
def login_access_token(
    request: Request,  # Required for rate limiter
    session: SessionDep,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    """OAuth2 compatible token login.

    Rate limited to slow down credential stuffing.
    """
    user = authenticate(
        session=session, email=form_data.username, password=form_data.password
    )
    if not user:
        logger.info("user_login_failed", email=form_data.username)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )

    access_token, _, expires_at = create_access_token(str(user.id))
    logger.info("user_login", email=user.email)

    return Token(
        access_token=access_token,
        expires_in=int((expires_at - datetime.now(UTC)).total_seconds()),
    )


@router.post("/logout", response_model=Message)
def logout(session: SessionDep, current_user: CurrentUser, token: TokenDep) -> Message:
    """Revoke the access token used for this request."""
    payload = decode_token(token)
    jti = payload.get("jti")
    if jti:
        revoke_token(
            session=session,
            jti=jti,
            user_id=current_user.id,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        )
    logger.info("user_logout", user_id=str(current_user.id))
    return Message(message="Logged out successfully")
