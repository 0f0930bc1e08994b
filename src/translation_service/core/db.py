from collections.abc import Generator
from typing import Any, TypeVar

from sqlalchemy import Engine
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, func, select
from sqlmodel.sql.expression import SelectOfScalar

from translation_service.core.config import settings


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """Create the SQLAlchemy engine for a database URL.

    PostgreSQL gets a bounded connection pool. SQLite (used by tests and
    local tinkering) is opened with cross-thread access enabled because the
    export scan runs in a worker thread; in-memory SQLite additionally
    shares a single connection so every session sees the same database.
    """
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=echo,
    )


engine = build_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    echo=settings.DEBUG and settings.ENVIRONMENT == "local",
)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


T = TypeVar("T", bound=SQLModel)


def paginate(
    session: Session,
    statement: SelectOfScalar[T],
    skip: int = 0,
    limit: int = 100,
    order_by: InstrumentedAttribute[Any] | None = None,
) -> tuple[list[T], int]:
    """Execute a paginated query and return results with total count.

    Args:
        session: Database session
        statement: Base SQLModel select statement (without pagination)
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return
        order_by: Optional column to order by

    Returns:
        Tuple of (list of results, total count)

    Example:
        statement = select(Translation).where(Translation.locale == "en")
        rows, total = paginate(session, statement, skip=0, limit=20)
    """
    count_statement = select(func.count()).select_from(statement.subquery())
    count = session.exec(count_statement).one()

    if order_by is not None:
        statement = statement.order_by(order_by)

    paginated_statement = statement.offset(skip).limit(limit)
    results = session.exec(paginated_statement).all()

    return list(results), count
