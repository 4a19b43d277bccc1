"""
Topic Extraction - Keyword-based domain tagging for agent responses

WHAT: Maps response text to educational domains and domains to agents
WHERE: swarm/runtime/orchestration/topics.py - analysis helpers
WHO: Agent manager updating the session topic set; callers choosing agents
TIME: O(domains x keywords) substring checks per response

Keyword tables are configuration data. The defaults below can be replaced
through OrchestratorConfig without touching the matching logic.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

DEFAULT_DOMAIN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "science": (
        "science",
        "biology",
        "chemistry",
        "physics",
        "experiment",
        "hypothesis",
        "atoms",
        "molecules",
        "ecosystem",
    ),
    "math": (
        "math",
        "mathematics",
        "algebra",
        "geometry",
        "calculus",
        "equation",
        "number",
        "fraction",
        "decimal",
    ),
    "history": (
        "history",
        "ancient",
        "civilization",
        "empire",
        "war",
        "revolution",
        "king",
        "queen",
        "president",
    ),
    "literature": (
        "literature",
        "book",
        "story",
        "novel",
        "character",
        "plot",
        "author",
        "read",
        "write",
        "poetry",
    ),
    "arts": (
        "art",
        "music",
        "painting",
        "drawing",
        "sculpture",
        "instrument",
        "creativity",
        "imagination",
    ),
    "technology": (
        "technology",
        "computer",
        "code",
        "programming",
        "software",
        "hardware",
        "internet",
        "digital",
    ),
}

DEFAULT_TOPIC_AGENT_MAP: dict[str, str] = {
    "science": "science",
    "math": "science",
    "history": "critical_thinking",
    "literature": "creativity",
    "arts": "creativity",
    "technology": "science",
}

FALLBACK_AGENT_ID = "main"


class TopicExtractor:
    """Case-insensitive substring matcher over a domain keyword table."""

    def __init__(self, keywords: Mapping[str, Sequence[str]] | None = None) -> None:
        table = keywords if keywords is not None else DEFAULT_DOMAIN_KEYWORDS
        self._keywords: dict[str, tuple[str, ...]] = {
            domain: tuple(word.lower() for word in words) for domain, words in table.items()
        }

    @property
    def domains(self) -> tuple[str, ...]:
        return tuple(self._keywords)

    def extract(self, text: str | None) -> set[str]:
        """Return every domain with at least one keyword present in ``text``."""

        if not text:
            return set()
        lowered = text.lower()
        return {
            domain
            for domain, words in self._keywords.items()
            if any(word in lowered for word in words)
        }

    def extract_many(self, texts: Iterable[str]) -> set[str]:
        found: set[str] = set()
        for text in texts:
            found |= self.extract(text)
        return found


def extract_topics(text: str | None, keywords: Mapping[str, Sequence[str]] | None = None) -> set[str]:
    return TopicExtractor(keywords).extract(text)


def recommend_agent_for_topic(topic: str, mapping: Mapping[str, str] | None = None) -> str:
    """Return the preferred agent id for ``topic``, ``main`` when unmapped."""

    table = mapping if mapping is not None else DEFAULT_TOPIC_AGENT_MAP
    return table.get(topic, FALLBACK_AGENT_ID)


__all__ = [
    "DEFAULT_DOMAIN_KEYWORDS",
    "DEFAULT_TOPIC_AGENT_MAP",
    "FALLBACK_AGENT_ID",
    "TopicExtractor",
    "extract_topics",
    "recommend_agent_for_topic",
]
