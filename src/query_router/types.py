"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Intent(str, Enum):
    """Kind of downstream action a query calls for."""

    DOCUMENT = "document"
    WEB = "web"
    COMMAND = "command"
    MEMORY = "memory"
    HYBRID = "hybrid"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class DocumentRecord:
    """An uploaded document available for matching."""

    id: str
    file_name: str
    status: str
    stage: str = "unknown"
    uploaded_at: datetime | None = None
    file_type: str | None = None


@dataclass(slots=True)
class DocumentMatch:
    """Best single document referenced by a query."""

    id: str
    file_name: str
    score: float


@dataclass(slots=True)
class MatchResult:
    """Exhaustive matched ids plus the first-match-wins best guess."""

    matched_ids: list[str]
    best_match: DocumentMatch | None = None


@dataclass(slots=True)
class QueryContext:
    """Context clues extracted from a query."""

    mentions_document: bool
    mentions_file: bool
    mentions_upload: bool
    is_question: bool
    keywords: list[str]
    document_name: str | None = None
    matched_document_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class QueryClassification:
    """Routing decision for one query."""

    intent: Intent
    confidence: float
    suggested_tool: str
    context: QueryContext


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call.

    `empty` marks calls that produced nothing usable (no hits, or no
    backend), which is what triggers the hybrid web-search fallback.
    """

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
    empty: bool = False


@dataclass(slots=True)
class ToolCall:
    """Output of one tool execution with its trace."""

    output: str
    trace: ToolTrace

    @property
    def empty(self) -> bool:
        return self.trace.empty
