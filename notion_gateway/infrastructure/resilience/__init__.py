"""API Resilience Implementations.

Backoff policy, the retrying executor built on it, and an optional shared
rate limiter.
Bounded Context: API Resilience
"""
