from slowapi import Limiter
from slowapi.util import get_remote_address

from translation_service.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"] if settings.ENVIRONMENT != "local" else [],
    enabled=settings.ENVIRONMENT != "local",
)

AUTH_RATE_LIMIT = "5/minute"

# Cache misses rescan the whole table
EXPORT_RATE_LIMIT = "30/minute"
