# File: busbuzz/core/ratelimit.py

from slowapi import Limiter
from slowapi.util import get_remote_address

from busbuzz.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

AUTH_LIMIT = "20/15minutes"
LOGIN_LIMIT = "10/15minutes"
WRITE_LIMIT = "100/15minutes"
IMPORT_LIMIT = "50/15minutes"
EXPORT_LIMIT = "5/10minutes"
