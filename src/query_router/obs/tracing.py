"""Tracing and summary metrics for routing decisions."""

from __future__ import annotations

import threading
import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

from query_router.types import QueryClassification, ToolTrace


@dataclass(slots=True)
class RouteTraceRecord:
    trace_id: str
    timestamp_utc: str
    query: str
    intent: str
    confidence: float
    suggested_tool: str
    tool_used: str
    fallback_used: bool
    latency_ms: float
    document_name: str | None = None
    matched_document_ids: list[str] = field(default_factory=list)
    tool_traces: list[ToolTrace] = field(default_factory=list)


class TraceStore:
    """In-memory trace storage for API-level observability."""

    def __init__(self) -> None:
        self._records: dict[str, RouteTraceRecord] = {}
        self._lock = threading.Lock()

    def create_record(
        self,
        *,
        query: str,
        classification: QueryClassification,
        tool_used: str,
        fallback_used: bool,
        tool_traces: list[ToolTrace],
        latency_ms: float,
    ) -> RouteTraceRecord:
        trace_id = str(uuid.uuid4())
        record = RouteTraceRecord(
            trace_id=trace_id,
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            query=query,
            intent=classification.intent.value,
            confidence=classification.confidence,
            suggested_tool=classification.suggested_tool,
            tool_used=tool_used,
            fallback_used=fallback_used,
            latency_ms=latency_ms,
            document_name=classification.context.document_name,
            matched_document_ids=list(classification.context.matched_document_ids),
            tool_traces=tool_traces,
        )
        with self._lock:
            self._records[trace_id] = record
        return record

    def get(self, trace_id: str) -> RouteTraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[RouteTraceRecord]:
        if limit <= 0:
            return []
        return self._snapshot()[-limit:]

    def summary(self) -> dict[str, object]:
        """Aggregate routing metrics for dashboard display."""
        records = self._snapshot()
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "fallback_rate": 0.0,
                "intent_counts": {},
                "tool_counts": {},
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        fallbacks = sum(1 for record in records if record.fallback_used)

        return {
            "total_requests": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "fallback_rate": fallbacks / total,
            "intent_counts": dict(Counter(record.intent for record in records)),
            "tool_counts": dict(Counter(record.tool_used for record in records)),
        }

    def _snapshot(self) -> list[RouteTraceRecord]:
        with self._lock:
            return list(self._records.values())


class Timer:
    """Simple context timer used by the router."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
