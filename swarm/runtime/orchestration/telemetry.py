"""
Telemetry Collection - Span timing around model calls and queued tasks

WHAT: Lightweight spans recording duration, success, and call attributes
WHERE: swarm/runtime/orchestration/telemetry.py - observability layer
WHO: AgentManager (model calls) and SwarmOrchestrator (task processing)
TIME: Zero-overhead when disabled, <0.1ms overhead when enabled

Span names emitted by the runtime:
- swarm.model_generate: one language-model call for an agent prompt
- swarm.process_task: one dequeued processing task end to end

Every runtime span carries ``session_id`` and ``agent_id``. Spans closed by
an exception also carry ``error`` (the exception class name).
"""

from __future__ import annotations

import logging
import time
from collections import deque
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class TelemetrySpan(AbstractContextManager["TelemetrySpan"]):
    """Context manager capturing span metadata and duration."""

    def __init__(
        self,
        client: "TelemetryClient",
        name: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._client = client
        self.name = name
        self.attributes: Dict[str, Any] = dict(attributes or {})
        self._start: float = 0.0

    def __enter__(self) -> "TelemetrySpan":
        self._start = time.perf_counter()
        return self

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def __exit__(self, exc_type, exc, exc_tb) -> bool:
        duration_ms = (time.perf_counter() - self._start) * 1000.0
        self.attributes.setdefault("success", exc is None)
        if exc_type is not None:
            self.attributes.setdefault("error", exc_type.__name__)
        self.attributes["duration_ms"] = duration_ms
        try:
            self._client.emit_span(self.name, self.attributes)
        except Exception as e:
            logger.warning(f"Telemetry sink failed for span {self.name}: {e}")
        return False


class TelemetryClient:
    """Base telemetry client; override `emit_span` for custom sinks."""

    def span(
        self,
        name: str,
        *,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> TelemetrySpan:
        return TelemetrySpan(self, name, attributes)

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:
        """Handle span completion. Subclasses override this hook."""

        raise NotImplementedError


@dataclass(slots=True)
class NoOpTelemetryClient(TelemetryClient):
    """Telemetry client that silently discards spans."""

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:  # noqa: D401 - intentionally empty
        pass


class LoggingTelemetryClient(TelemetryClient):
    """Writes each finished span as one debug log line."""

    def __init__(self, level: int = logging.DEBUG) -> None:
        self._level = level

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:
        payload = {k: attributes[k] for k in sorted(attributes)}
        logger.log(self._level, f"[telemetry] {name}: {payload}")


@dataclass(frozen=True, slots=True)
class SpanRecord:
    name: str
    attributes: Dict[str, Any]

    @property
    def session_id(self) -> Optional[str]:
        return self.attributes.get("session_id")


class RecordingTelemetryClient(TelemetryClient):
    """Keeps the most recent ``capacity`` spans for inspection."""

    def __init__(self, capacity: int = 1000) -> None:
        self._spans: Deque[SpanRecord] = deque(maxlen=capacity)

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:
        self._spans.append(SpanRecord(name, dict(attributes)))

    @property
    def spans(self) -> List[SpanRecord]:
        return list(self._spans)

    def for_session(self, session_id: str, name: Optional[str] = None) -> List[SpanRecord]:
        return [
            span
            for span in self._spans
            if span.session_id == session_id and (name is None or span.name == name)
        ]

    def failures(self) -> List[SpanRecord]:
        return [span for span in self._spans if not span.attributes.get("success", True)]


__all__ = [
    "SpanRecord",
    "RecordingTelemetryClient",
    "TelemetryClient",
    "TelemetrySpan",
    "NoOpTelemetryClient",
    "LoggingTelemetryClient",
]
