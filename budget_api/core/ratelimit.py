from slowapi import Limiter
from slowapi.util import get_remote_address

from budget_api.core.config import settings

# Backed by Redis so limits survive across worker restarts
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.ratelimit_storage_uri,
    enabled=settings.ratelimit_enabled,
)
