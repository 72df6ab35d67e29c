"""Rate limiting utilities using slowapi."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from webstrate_assets.config import get_settings

settings = get_settings()

# Create limiter instance
limiter = Limiter(key_func=get_remote_address)


def rate_limit_upload():
    """Rate limit for asset uploads."""
    return limiter.limit(f"{settings.rate_limit_per_minute}/minute")
