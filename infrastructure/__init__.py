"""Infrastructure layer — storage and resilience for the TrackShare feed service.

Modules:
    cache            Redis-backed trending chart cache with TTL.
    share_store      Redis-backed share links with a 30-day TTL.
    retry            Exponential backoff retry for transient HTTP errors.
    circuit_breaker  Circuit breaker for music-catalog calls.
    metrics          Prometheus metrics registry.
"""
