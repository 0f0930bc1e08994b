from translation_service.translations.models import (
    Translation,
    TranslationBase,
    TranslationCreate,
    TranslationPublic,
    TranslationSearch,
    TranslationsPublic,
    TranslationUpdate,
)
from translation_service.translations.store import (
    TranslationStore,
    WriteEvent,
    WriteListener,
)

__all__ = [
    # Models
    "Translation",
    "TranslationBase",
    "TranslationCreate",
    "TranslationPublic",
    "TranslationSearch",
    "TranslationUpdate",
    "TranslationsPublic",
    # Store
    "TranslationStore",
    "WriteEvent",
    "WriteListener",
]
