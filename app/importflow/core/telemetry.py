"""Injected telemetry sink.

One sink is created per process (``create_app`` or the jobs CLI) and handed to
the services that report operational failures. The default sink keeps only the
most recent events so long-running processes do not accumulate history.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

from app.importflow.core.logging import log_json
from app.importflow.core.metrics import metrics

logger = logging.getLogger("importflow.telemetry")

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    severity: str = "info"
    attributes: dict = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.utcnow)


class TelemetrySink:
    def record(self, event: TelemetryEvent) -> None:
        raise NotImplementedError


class NullTelemetrySink(TelemetrySink):
    def record(self, event: TelemetryEvent) -> None:
        return None


class BufferedTelemetrySink(TelemetrySink):
    def __init__(self, max_events: int = 500) -> None:
        self._events: deque[TelemetryEvent] = deque(maxlen=max_events)

    def record(self, event: TelemetryEvent) -> None:
        self._events.append(event)
        metrics.increment_telemetry_event(event.name)
        log_json(
            logger,
            {
                "event": event.name,
                "severity": event.severity,
                "occurred_at": event.occurred_at,
                **event.attributes,
            },
            level=_LEVELS.get(event.severity, logging.INFO),
        )

    def recent(self, limit: int | None = None) -> list[TelemetryEvent]:
        events = list(self._events)
        if limit is not None:
            events = events[-limit:]
        return events

    def clear(self) -> None:
        self._events.clear()
