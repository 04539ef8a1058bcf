from __future__ import annotations

from .retry import retry_logic, RETRIABLE

__all__ = [
    "retry_logic",
    "RETRIABLE",
]
