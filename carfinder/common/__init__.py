"""Shared helpers for outbound calls."""

from .rate_limiter import RateLimiter
from .retry import backoff_delay, call_with_retry

__all__ = ["RateLimiter", "backoff_delay", "call_with_retry"]
