"""Record store for translations.

Wraps the ``translation`` table with the write path (create/update/delete),
search, and the ordered keyset scan used by the bulk export. Components
that must react to data changes register a listener with ``on_write``;
listeners run synchronously after a successful commit, before the write
call returns. Failed writes (validation, not found, uniqueness conflicts)
roll back and never notify.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import Engine, String, cast, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from translation_service.core.base_models import utcnow
from translation_service.core.db import paginate
from translation_service.core.exceptions import ResourceExistsError
from translation_service.core.logging import get_logger
from translation_service.core.uow import atomic, read_only
from translation_service.translations.models import (
    Translation,
    TranslationCreate,
    TranslationSearch,
    TranslationUpdate,
)

logger = get_logger(__name__)

WriteOperation = Literal["create", "update", "delete"]

# Columns that may not be cleared through a partial update
_REQUIRED_FIELDS = ("locale", "key", "value")


@dataclass(frozen=True)
class WriteEvent:
    """A committed change to the translation table."""

    operation: WriteOperation
    translation_id: int
    locale: str
    key: str


WriteListener = Callable[[WriteEvent], None]


def _event(operation: WriteOperation, db_obj: Translation) -> WriteEvent:
    assert db_obj.id is not None
    return WriteEvent(
        operation=operation,
        translation_id=db_obj.id,
        locale=db_obj.locale,
        key=db_obj.key,
    )


class TranslationStore:
    """Persistence for translation records.

    Args:
        bind: Engine used for the export scan, which opens its own
              short-lived sessions. Request-handling methods take the
              caller's session instead.
    """

    def __init__(self, bind: Engine):
        self._bind = bind
        self._listeners: list[WriteListener] = []

    def on_write(self, listener: WriteListener) -> Callable[[], None]:
        """Register a post-commit write listener.

        Returns:
            A callable that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: WriteEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def get(self, *, session: Session, translation_id: int) -> Translation | None:
        return session.get(Translation, translation_id)

    def create(
        self, *, session: Session, translation_in: TranslationCreate
    ) -> Translation:
        """Insert a translation.

        Raises:
            ResourceExistsError: The (locale, key) pair is already taken
        """
        db_obj = Translation.model_validate(translation_in)
        try:
            with atomic(session) as uow:
                uow.session.add(db_obj)
                uow.flush()
        except IntegrityError as e:
            raise ResourceExistsError("Translation", "locale and key") from e

        session.refresh(db_obj)
        logger.info(
            "translation_created",
            translation_id=db_obj.id,
            locale=db_obj.locale,
            key=db_obj.key,
        )
        self._notify(_event("create", db_obj))
        return db_obj

    def update(
        self,
        *,
        session: Session,
        db_obj: Translation,
        translation_in: TranslationUpdate,
    ) -> Translation:
        """Apply a partial update.

        An update that sets no fields is not a write: nothing is committed
        and listeners are not notified.

        Raises:
            ResourceExistsError: The new (locale, key) pair is already taken
        """
        data: dict[str, Any] = translation_in.model_dump(exclude_unset=True)
        for field in _REQUIRED_FIELDS:
            if field in data and data[field] is None:
                del data[field]
        if not data:
            return db_obj

        db_obj.sqlmodel_update(data)
        db_obj.updated_at = utcnow()
        try:
            with atomic(session) as uow:
                uow.session.add(db_obj)
                uow.flush()
        except IntegrityError as e:
            raise ResourceExistsError("Translation", "locale and key") from e

        session.refresh(db_obj)
        logger.info(
            "translation_updated",
            translation_id=db_obj.id,
            fields=sorted(data),
        )
        self._notify(_event("update", db_obj))
        return db_obj

    def delete(self, *, session: Session, db_obj: Translation) -> None:
        # Captured before commit: the instance is detached afterwards
        event = _event("delete", db_obj)
        with atomic(session) as uow:
            uow.session.delete(db_obj)

        logger.info("translation_deleted", translation_id=event.translation_id)
        self._notify(event)

    def search(
        self,
        *,
        session: Session,
        filters: TranslationSearch,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Translation], int]:
        """Substring search on key/value, exact locale, any-of tags.

        All user input goes through bound parameters; LIKE wildcards in
        search terms are escaped.
        """
        statement = select(Translation)
        if filters.key:
            statement = statement.where(
                col(Translation.key).contains(filters.key, autoescape=True)
            )
        if filters.value:
            statement = statement.where(
                col(Translation.value).contains(filters.value, autoescape=True)
            )
        if filters.locale:
            statement = statement.where(Translation.locale == filters.locale)
        if filters.tags:
            # Tags are stored as a JSON array of strings; match the quoted
            # element so "web" does not match "webview"
            tags_text = cast(col(Translation.tags), String)
            statement = statement.where(
                or_(
                    *(
                        tags_text.contains(f'"{tag}"', autoescape=True)
                        for tag in filters.tags
                    )
                )
            )

        return paginate(
            session,
            statement,
            skip=skip,
            limit=limit,
            order_by=col(Translation.id),
        )

    def scan_pages(self, page_size: int) -> Iterator[list[Any]]:
        """Yield every translation in primary-key order, one page at a time.

        Each page is a keyset query (``id > last_id``) in its own short
        read transaction, so rows committed during the scan may or may not
        appear. Only the export projection is selected. Rows expose
        ``id``, ``locale``, ``key``, ``value`` and ``tags`` attributes.
        """
        if page_size < 1:
            raise ValueError("page_size must be positive")

        last_id: int | None = None
        while True:
            statement = select(
                Translation.id,
                Translation.locale,
                Translation.key,
                Translation.value,
                Translation.tags,
            )
            if last_id is not None:
                statement = statement.where(col(Translation.id) > last_id)
            statement = statement.order_by(col(Translation.id)).limit(page_size)

            with read_only(bind=self._bind) as session:
                page = list(session.exec(statement).all())

            if not page:
                return
            last_id = page[-1].id
            exhausted = len(page) < page_size
            yield page
            del page
            if exhausted:
                return

    def scan_ordered(self, page_size: int) -> Iterator[Any]:
        """Yield every translation row in primary-key order."""
        for page in self.scan_pages(page_size):
            yield from page
