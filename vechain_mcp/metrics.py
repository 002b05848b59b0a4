"""Minimal in-process metrics recorder (not suitable for multi-process aggregation)."""

from __future__ import annotations

from collections import Counter
from threading import Lock
from typing import Dict


class MetricsRecorder:
    def __init__(self) -> None:
        self._lock = Lock()
        self._requests = 0
        self._request_durations_ms: Dict[str, float] = {}
        self._tool_success: Counter[str] = Counter()
        self._tool_error: Counter[str] = Counter()
        self._cache_hits: Counter[str] = Counter()
        self._cache_misses: Counter[str] = Counter()
        self._coalesced: Counter[str] = Counter()
        self._upstream_calls: Counter[str] = Counter()
        self._swallowed_errors: Counter[str] = Counter()

    def incr_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_duration(self, request_id: str, duration_ms: float) -> None:
        with self._lock:
            self._request_durations_ms[request_id] = duration_ms

    def record_tool(self, tool: str, *, success: bool) -> None:
        with self._lock:
            if success:
                self._tool_success[tool] += 1
            else:
                self._tool_error[tool] += 1

    def record_cache(self, cache: str, *, hit: bool) -> None:
        with self._lock:
            if hit:
                self._cache_hits[cache] += 1
            else:
                self._cache_misses[cache] += 1

    def incr_coalesced(self, cache: str) -> None:
        with self._lock:
            self._coalesced[cache] += 1

    def incr_upstream_call(self, kind: str) -> None:
        with self._lock:
            self._upstream_calls[kind] += 1

    def incr_swallowed_error(self, kind: str) -> None:
        with self._lock:
            self._swallowed_errors[kind] += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "requests": self._requests,
                "tool_success": dict(self._tool_success),
                "tool_error": dict(self._tool_error),
                "cache_hits": dict(self._cache_hits),
                "cache_misses": dict(self._cache_misses),
                "coalesced": dict(self._coalesced),
                "upstream_calls": dict(self._upstream_calls),
                "swallowed_errors": dict(self._swallowed_errors),
                "recent_request_durations_ms": dict(self._request_durations_ms),
            }

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._request_durations_ms.clear()
            self._tool_success.clear()
            self._tool_error.clear()
            self._cache_hits.clear()
            self._cache_misses.clear()
            self._coalesced.clear()
            self._upstream_calls.clear()
            self._swallowed_errors.clear()


default_metrics = MetricsRecorder()
