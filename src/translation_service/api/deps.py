"""Request-scoped access to the components built at application startup."""

from typing import Annotated

from fastapi import Depends, Request

from translation_service.export import ExportService
from translation_service.translations import TranslationStore


def get_translation_store(request: Request) -> TranslationStore:
    store: TranslationStore = request.app.state.translation_store
    return store


def get_export_service(request: Request) -> ExportService:
    service: ExportService = request.app.state.export_service
    return service


StoreDep = Annotated[TranslationStore, Depends(get_translation_store)]
ExportServiceDep = Annotated[ExportService, Depends(get_export_service)]
