"""Revocation list for logged-out access tokens.

Revoked JWT ids are persisted so logouts survive restarts, and mirrored
into an in-memory TTL cache because every authenticated request checks it.
"""

from datetime import UTC, datetime
import uuid

from sqlmodel import Field, Session, SQLModel, select

from translation_service.core.cache import TTLCache
from translation_service.core.config import settings
from translation_service.core.logging import get_logger

logger = get_logger(__name__)

# No token outlives ACCESS_TOKEN_EXPIRE_MINUTES, so neither does its entry
_revoked_tokens_cache = TTLCache(ttl_seconds=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)


class RevokedToken(SQLModel, table=True):
    """Database model for persisted revoked tokens."""

    __tablename__ = "revoked_tokens"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    jti: str = Field(index=True, unique=True)  # JWT ID
    user_id: uuid.UUID = Field(index=True)
    token_type: str
    revoked_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime  # When the token would have naturally expired


def revoke_token(
    session: Session,
    jti: str,
    user_id: uuid.UUID,
    expires_at: datetime,
    token_type: str = "access",
) -> None:
    """Revoke a token by its JTI.

    Args:
        session: Database session
        jti: JWT ID to revoke
        user_id: User who owns the token
        expires_at: When the token would naturally expire
        token_type: Token type claim
    """
    remaining = int((expires_at - datetime.now(UTC)).total_seconds())
    if remaining > 0:
        _revoked_tokens_cache.set(jti, True, ttl_seconds=remaining)

    revoked = RevokedToken(
        jti=jti,
        user_id=user_id,
        token_type=token_type,
        expires_at=expires_at,
    )
    session.add(revoked)
    session.commit()

    logger.info(
        "token_revoked",
        jti=jti,
        user_id=str(user_id),
        token_type=token_type,
    )


def is_token_revoked(session: Session, jti: str | None) -> bool:
    """Check if a token has been revoked.

    Args:
        session: Database session
        jti: JWT ID to check

    Returns:
        True if the token is revoked
    """
    if jti is None:
        return False

    if _revoked_tokens_cache.get(jti) is True:
        return True

    # Cold start or cache miss
    statement = select(RevokedToken).where(RevokedToken.jti == jti)
    if session.exec(statement).first():
        _revoked_tokens_cache.set(jti, True)
        return True

    return False


def cleanup_expired_tokens(session: Session) -> int:
    """Remove revoked tokens that have expired anyway.

    Returns:
        Count of cleaned up tokens
    """
    now = datetime.now(UTC)
    statement = select(RevokedToken).where(RevokedToken.expires_at < now)
    expired_tokens = session.exec(statement).all()

    for token in expired_tokens:
        session.delete(token)

    if expired_tokens:
        session.commit()
        logger.info("expired_tokens_cleaned", count=len(expired_tokens))

    _revoked_tokens_cache.cleanup_expired()
    return len(expired_tokens)
