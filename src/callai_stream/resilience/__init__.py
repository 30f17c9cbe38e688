"""
Resilience layer - invalid-model fallback and credential-refresh retry.

- FallbackOrchestrator: runs a send under the fallback/refresh protocol
- Attempt / AttemptState: per-send records
"""

from callai_stream.resilience.fallback import (
    Attempt,
    AttemptState,
    FallbackOrchestrator,
)

__all__ = [
    "Attempt",
    "AttemptState",
    "FallbackOrchestrator",
]
