"""
Listing Video Core Components

Foundational infrastructure shared by the composition and render services:
- Configuration loaded from the environment
- Error taxonomy
- Circuit breaker for provider resilience
"""

from .circuit_breaker import CircuitBreaker, CircuitState
from .config import Config, CompositionConfig
from .errors import (
    ConfigurationError,
    ListingVideoError,
    StatusQueryError,
    SubmissionError,
    ValidationError,
)

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "Config",
    "CompositionConfig",
    "ConfigurationError",
    "ListingVideoError",
    "StatusQueryError",
    "SubmissionError",
    "ValidationError",
]
