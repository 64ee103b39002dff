"""Upstream Layer - Gemini generateContent adapter

- GeminiEventClient: tier-aware adapter (grounded / base)
- SharedHttpClient: process-wide curl_cffi session
- parsing: tolerant JSON array extraction + provenance sources
"""

from .gemini_client import GeminiEventClient
from .http_client import SharedHttpClient, get_shared_http_client, shutdown_shared_http_client
from .parsing import extract_json_array, grounding_sources

__all__ = [
    "GeminiEventClient",
    "SharedHttpClient",
    "get_shared_http_client",
    "shutdown_shared_http_client",
    "extract_json_array",
    "grounding_sources",
]
