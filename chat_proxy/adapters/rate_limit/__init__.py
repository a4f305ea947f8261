"""Rate limiting adapters.

The limiter talks to its records through ``AbstractRateLimitStore`` so the
in-memory store can later be replaced by Redis or another shared backend
without changing the API layer.
"""
