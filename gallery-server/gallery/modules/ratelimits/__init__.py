"""Request rate limiting."""

from .models import CounterStore, RateLimitResult, RateLimitWindow
from .service import RateLimiter, rate_limit_key

__all__ = ["CounterStore", "RateLimitResult", "RateLimitWindow", "RateLimiter", "rate_limit_key"]
