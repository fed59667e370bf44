"""
Shared extension objects. The limiter is created here and attached to the app in main.py.
Limits are per client address. memory:// is per process; point RATE_LIMIT_STORAGE_URI at
redis:// when running several workers.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from laportal.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)
