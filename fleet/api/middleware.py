"""Per-client rate limiting shared by all routers."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from fleet.config import settings

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
