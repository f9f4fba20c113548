from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass


@dataclass
class QueryTiming:
    total_ms: float = 0.0
    statements: int = 0


_query_timing: ContextVar[QueryTiming | None] = ContextVar("query_timing", default=None)


def start_db_timer() -> object:
    return _query_timing.set(QueryTiming())


def stop_db_timer(token: object) -> None:
    _query_timing.reset(token)


def add_db_time(delta_ms: float) -> None:
    timing = _query_timing.get()
    if timing is None:
        return
    timing.total_ms += delta_ms
    timing.statements += 1


def get_db_timing() -> QueryTiming | None:
    return _query_timing.get()


def get_db_time_ms() -> float | None:
    timing = _query_timing.get()
    return timing.total_ms if timing is not None else None
