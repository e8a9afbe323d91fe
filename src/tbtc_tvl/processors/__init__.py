from __future__ import annotations

from .aggregator import aggregate

__all__ = [
    "aggregate",
]
