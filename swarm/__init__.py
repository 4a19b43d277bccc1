"""Swarm orchestrator runtime package."""

__all__ = [
    "runtime",
]
