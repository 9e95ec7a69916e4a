"""
Video Generation Service

Submits listing renders to remote providers and normalizes their status:
- Shotstack: composes a slideshow timeline of every photo
- Luma: interpolates motion between consecutive photo pairs

Provider calls go through per-provider circuit breakers.
"""

from .client import ProviderAdapter
from .luma import LumaAdapter
from .models import (
    GenerationRequest,
    JobPhase,
    PropertyFacts,
    Provider,
    RenderJob,
    StyleOptions,
    SubmissionResult,
    UnifiedStatus,
)
from .shotstack import ShotstackAdapter
from .status import STATUS_TABLES, StatusNormalizer, StatusTable

__all__ = [
    "GenerationRequest",
    "JobPhase",
    "LumaAdapter",
    "PropertyFacts",
    "Provider",
    "ProviderAdapter",
    "RenderJob",
    "STATUS_TABLES",
    "ShotstackAdapter",
    "StatusNormalizer",
    "StatusTable",
    "StyleOptions",
    "SubmissionResult",
    "UnifiedStatus",
]
