"""Engine Layer - Core Orchestration and Fallback Management

This module provides the core engine layer, implementing:
- EventOrchestrator: Main entry point (cache → grounded → base → stale → seed)
- QuotaTracker: Per-tier exhaustion windows
- InFlightRegistry / CancellationToken: Supersession of stale requests
- EventNormalizer: Stable ids, title dedup, seed merge
- FetchResult: Standardized result format
- TierStrategy: Fallback / backoff decision logic
- build_key: Deterministic query identity
"""

from .cancellation import CancellationToken, InFlightRegistry
from .keys import QueryKey, build_key
from .normalizer import EventNormalizer, normalize_title
from .orchestrator import EventOrchestrator
from .quota import QuotaTracker
from .result import FetchResult, FetchStatus
from .strategy import Tier, TierStrategy

__all__ = [
    "EventOrchestrator",
    "QuotaTracker",
    "InFlightRegistry",
    "CancellationToken",
    "EventNormalizer",
    "normalize_title",
    "FetchResult",
    "FetchStatus",
    "Tier",
    "TierStrategy",
    "QueryKey",
    "build_key",
]
