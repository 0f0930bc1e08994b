from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, Request, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from translation_service.api.deps import ExportServiceDep, StoreDep
from translation_service.auth import CurrentUser, Message, SessionDep
from translation_service.core.exceptions import ResourceNotFoundError
from translation_service.core.rate_limit import EXPORT_RATE_LIMIT, limiter
from translation_service.export import iter_snapshot
from translation_service.translations import (
    Translation,
    TranslationCreate,
    TranslationPublic,
    TranslationSearch,
    TranslationsPublic,
    TranslationUpdate,
)

router = APIRouter(prefix="/translations", tags=["translations"])

SEARCH_MAX_LIMIT = 100


def get_translation_or_404(
    session: SessionDep,
    store: StoreDep,
    current_user: CurrentUser,
    translation_id: Annotated[int, Path(description="Translation ID")],
) -> Translation:
    """Load a translation for a path parameter.

    Raises:
        ResourceNotFoundError: No translation has this id
    """
    translation = store.get(session=session, translation_id=translation_id)
    if not translation:
        raise ResourceNotFoundError("Translation", str(translation_id))
    return translation


TranslationDep = Annotated[Translation, Depends(get_translation_or_404)]


def _split_tags(tags: str | None) -> list[str] | None:
    if not tags:
        return None
    parsed = [tag.strip() for tag in tags.split(",") if tag.strip()]
    return parsed or None


@router.get("/search", response_model=TranslationsPublic)
def search_translations(
    session: SessionDep,
    store: StoreDep,
    current_user: CurrentUser,
    key: str | None = None,
    value: str | None = None,
    tags: Annotated[
        str | None, Query(description="Comma-separated; matches any")
    ] = None,
    locale: str | None = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=SEARCH_MAX_LIMIT)] = 20,
) -> Any:
    """Search translations by key/value substring, locale and tags."""
    filters = TranslationSearch(
        key=key, value=value, tags=_split_tags(tags), locale=locale
    )
    translations, count = store.search(
        session=session, filters=filters, skip=skip, limit=limit
    )
    return TranslationsPublic(data=translations, count=count)


@router.get(
    "/export",
    response_class=StreamingResponse,
    responses={200: {"content": {"application/json": {}}}},
)
@limiter.limit(EXPORT_RATE_LIMIT)
async def export_translations(
    request: Request,  # Required for rate limiter
    export_service: ExportServiceDep,
    current_user: CurrentUser,
) -> StreamingResponse:
    """Download every translation as one JSON array.

    Served from a cached snapshot while no write has happened since it
    was built; otherwise the table is rescanned. Concurrent requests
    share a single scan.
    """
    lease, cache_hit = await export_service.export()
    snapshot = lease.snapshot
    return StreamingResponse(
        iter_snapshot(lease),
        media_type="application/json",
        headers={
            "Content-Length": str(snapshot.size),
            "Content-Disposition": f'attachment; filename="{snapshot.filename}"',
            "X-Export-Cache": "HIT" if cache_hit else "MISS",
        },
        # Covers a response that is never iterated
        background=BackgroundTask(lease.release),
    )


@router.post(
    "", response_model=TranslationPublic, status_code=status.HTTP_201_CREATED
)
def create_translation(
    session: SessionDep,
    store: StoreDep,
    current_user: CurrentUser,
    translation_in: TranslationCreate,
) -> Any:
    """Create a translation."""
    return store.create(session=session, translation_in=translation_in)


@router.get("/{translation_id}", response_model=TranslationPublic)
def read_translation(translation: TranslationDep) -> Any:
    """Get a translation by ID."""
    return translation


@router.put("/{translation_id}", response_model=TranslationPublic)
def update_translation(
    session: SessionDep,
    store: StoreDep,
    translation: TranslationDep,
    translation_in: TranslationUpdate,
) -> Any:
    """Update a translation. Only the fields sent are changed."""
    return store.update(
        session=session, db_obj=translation, translation_in=translation_in
    )


@router.delete("/{translation_id}", response_model=Message)
def delete_translation(
    session: SessionDep,
    store: StoreDep,
    translation: TranslationDep,
) -> Any:
    """Delete a translation."""
    store.delete(session=session, db_obj=translation)
    return Message(message="Translation deleted successfully")
