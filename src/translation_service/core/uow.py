"""Unit of Work pattern for atomic database operations.

Provides transaction management with automatic commit/rollback,
ensuring related database operations succeed or fail together.

Based on patterns from Cosmic Python:
https://www.cosmicpython.com/book/chapter_06_uow.html
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine
from sqlmodel import Session

from translation_service.core.db import engine as default_engine
from translation_service.core.logging import get_logger

logger = get_logger(__name__)


class UnitOfWork:
    """Manages a database transaction.

    Wraps a SQLModel session and provides explicit commit/rollback control.
    Use with the `atomic()` context manager for automatic handling.
    """

    def __init__(self, session: Session):
        self._session = session
        self._committed = False

    @property
    def session(self) -> Session:
        """Access the underlying session for queries."""
        return self._session

    @property
    def committed(self) -> bool:
        return self._committed

    def commit(self) -> None:
        """Commit the transaction.

        Should only be called once. Subsequent calls are no-ops.
        """
        if not self._committed:
            self._session.commit()
            self._committed = True
            logger.debug("uow_committed")

    def rollback(self) -> None:
        """Rollback the transaction.

        Safe to call multiple times or after commit.
        """
        if not self._committed:
            self._session.rollback()
            logger.debug("uow_rolled_back")

    def flush(self) -> None:
        """Flush pending changes to the database without committing.

        Useful for getting auto-generated IDs before commit.
        """
        self._session.flush()


def _open_session(session: Session | None, bind: Engine | None) -> tuple[Session, bool]:
    if session is not None:
        return session, False
    return Session(bind if bind is not None else default_engine), True


@contextmanager
def atomic(
    session: Session | None = None,
    *,
    bind: Engine | None = None,
) -> Generator[UnitOfWork, None, None]:
    """Context manager for atomic database operations.

    Args:
        session: Optional existing session. If None, creates a new one.
        bind: Engine for the new session (defaults to the app engine).

    Yields:
        UnitOfWork instance for the transaction

    Usage:
        with atomic(session) as uow:
            uow.session.add(translation)
            uow.flush()  # surfaces constraint violations here
            # Commits automatically on success
    """
    active_session, owns_session = _open_session(session, bind)
    uow = UnitOfWork(active_session)

    try:
        yield uow
        uow.commit()
    except Exception:
        uow.rollback()
        raise
    finally:
        if owns_session:
            active_session.close()


@contextmanager
def read_only(
    session: Session | None = None,
    *,
    bind: Engine | None = None,
) -> Generator[Session, None, None]:
    """Context manager for read-only database operations.

    Similar to atomic() but never commits. Each block is its own short
    transaction, which gives READ COMMITTED visibility between blocks.
    """
    active_session, owns_session = _open_session(session, bind)

    try:
        yield active_session
    finally:
        active_session.rollback()  # Ensure no accidental commits
        if owns_session:
            active_session.close()
