from typing import Annotated
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from pydantic import ValidationError
from sqlmodel import Session

from translation_service.auth.models import TokenPayload, User
from translation_service.auth.token_revocation import is_token_revoked
from translation_service.core.config import settings
from translation_service.core.db import get_db
from translation_service.core.security import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

SessionDep = Annotated[Session, Depends(get_db)]
TokenDep = Annotated[str, Depends(oauth2_scheme)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_payload(token: TokenDep) -> TokenPayload:
    """Decode and validate the bearer token.

    Raises:
        HTTPException: If the token is malformed, expired or not an access token
    """
    try:
        token_data = TokenPayload(**decode_token(token))
    except (jwt.InvalidTokenError, ValidationError) as e:
        raise _unauthorized("Could not validate credentials") from e

    if token_data.type != "access":
        raise _unauthorized("Invalid token type. Use access token for API requests.")
    return token_data


TokenPayloadDep = Annotated[TokenPayload, Depends(get_token_payload)]


def _parse_subject(sub: str | None) -> uuid.UUID:
    try:
        return uuid.UUID(str(sub))
    except ValueError as e:
        raise _unauthorized("Could not validate credentials") from e


def get_current_user(session: SessionDep, token_data: TokenPayloadDep) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        session: Database session
        token_data: Validated token claims

    Returns:
        Current authenticated user

    Raises:
        HTTPException: If the token was revoked or the user is unknown or inactive
    """
    if is_token_revoked(session, token_data.jti):
        raise _unauthorized("Token has been revoked")

    user = session.get(User, _parse_subject(token_data.sub))
    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Inactive user")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
