from slowapi import Limiter
from slowapi.util import get_remote_address

from pulse.core.config import Settings


def build_limiter(settings: Settings) -> Limiter | None:
    """Per-client limiter for API routes, or None when rate limiting is off.

    Health, readiness, liveness and metrics routes are never wrapped, so
    probes are not throttled.
    """
    if not settings.rate_limit_enabled:
        return None
    return Limiter(
        key_func=get_remote_address,
        headers_enabled=False,
        strategy="moving-window",
    )
