"""
Lightweight telemetry helpers.

Events are written as structured log lines and counters are kept in memory
so tests and the /api/admin/stats endpoint can read them back. Nothing is sent
to an external collector.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("legacy_diary.telemetry")

_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, list[float]] = {}


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Caller must redact emails, access codes and entry text.

    Side Effects:
        - Writes to logger (info level)
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and emit a debug log.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
        - Writes to logger (debug level)
    """
    value = _COUNTERS.get(name, 0) + increment
    _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _COUNTERS.get(name, 0)


def snapshot_counters() -> dict[str, int]:
    """Copy of all counters, sorted by name."""
    return dict(sorted(_COUNTERS.items()))


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Context manager for timing code blocks in milliseconds.

    Side Effects:
        - Appends to _LATENCIES dict (in-memory state)
        - Writes to logger (debug level) with timing
    """
    name = metric_name if metric_name.endswith("_ms") else f"{metric_name}_ms"
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("timing=%s ms=%.3f", name, elapsed_ms)
        _LATENCIES.setdefault(name, []).append(elapsed_ms)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """Count, min, max, avg and p95 for a timed block."""
    name = metric_name if metric_name.endswith("_ms") else f"{metric_name}_ms"
    samples = sorted(_LATENCIES.get(name, []))
    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0, "p95": 0.0}

    count = len(samples)
    p95_idx = min(int(count * 0.95), count - 1)
    return {
        "count": count,
        "min": samples[0],
        "max": samples[-1],
        "avg": sum(samples) / count,
        "p95": samples[p95_idx],
    }


def reset() -> None:
    """
    Clear all counters and latencies (used by tests).

    Side Effects:
        - Clears _COUNTERS and _LATENCIES
    """
    _COUNTERS.clear()
    _LATENCIES.clear()
