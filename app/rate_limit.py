# app/rate_limit.py
# Shared slowapi limiter. Lives outside main.py so route modules can decorate
# endpoints without importing the app.
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Keyed by client IP (X-Forwarded-For is resolved by the proxy headers middleware).
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])


def retry_after_seconds(rate_limit: str) -> str:
    """Window length of a slowapi limit string such as "10/minute"."""
    windows = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
    try:
        _, window = rate_limit.strip().split("/")
        return str(windows.get(window.strip().rstrip("s"), 60))
    except (ValueError, AttributeError):
        return "60"
