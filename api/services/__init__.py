"""
Service modules for API business logic.
"""

from .rate_limiter import RateLimiter
