"""Summaries of a user's document catalog for orchestrator prompts."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from query_router.types import DocumentRecord

PROCESSING_STATUSES = frozenset({"queued", "processing"})
READY_STAGES = frozenset({"indexed", "injected"})
COMPLETED_STATUS = "completed"
FAILED_STATUS = "failed"

DEFAULT_RECENT_WINDOW = timedelta(minutes=5)


@dataclass(slots=True)
class DocumentContext:
    """Catalog snapshot with per-status counts."""

    available_documents: list[DocumentRecord] = field(default_factory=list)
    processing_documents: int = 0
    ready_documents: int = 0
    failed_documents: int = 0
    recent_uploads: list[str] = field(default_factory=list)
    recent_window: timedelta = DEFAULT_RECENT_WINDOW

    def ready(self) -> list[DocumentRecord]:
        return [doc for doc in self.available_documents if is_ready(doc)]

    def processing(self) -> list[DocumentRecord]:
        return [doc for doc in self.available_documents if is_processing(doc)]


def is_ready(document: DocumentRecord) -> bool:
    return document.status == COMPLETED_STATUS and document.stage in READY_STAGES


def is_processing(document: DocumentRecord) -> bool:
    return document.status in PROCESSING_STATUSES


def build_document_context(
    documents: Sequence[DocumentRecord] | None,
    *,
    now: datetime | None = None,
    recent_window: timedelta = DEFAULT_RECENT_WINDOW,
) -> DocumentContext:
    """Summarize `documents` into counts and the ids uploaded recently.

    Documents without an `uploaded_at` timestamp are never counted as
    recent. Naive timestamps are treated as UTC.
    """

    available = list(documents or [])
    reference = _as_utc(now or datetime.now(timezone.utc))
    cutoff = reference - recent_window

    recent_uploads = [
        doc.id
        for doc in available
        if doc.uploaded_at is not None and _as_utc(doc.uploaded_at) >= cutoff
    ]

    return DocumentContext(
        available_documents=available,
        processing_documents=sum(1 for doc in available if is_processing(doc)),
        ready_documents=sum(1 for doc in available if is_ready(doc)),
        failed_documents=sum(1 for doc in available if doc.status == FAILED_STATUS),
        recent_uploads=recent_uploads,
        recent_window=recent_window,
    )


def format_document_context(context: DocumentContext) -> str:
    """Render the catalog as the plain-text block shown to the orchestrator."""

    if not context.available_documents:
        return "User has no uploaded documents."

    lines = [f"User has {len(context.available_documents)} document(s):"]

    ready = context.ready()
    if ready:
        names = ", ".join(doc.file_name for doc in ready)
        lines.append(f"- {len(ready)} ready for search: {names}")

    processing = context.processing()
    if processing:
        names = ", ".join(doc.file_name for doc in processing)
        lines.append(f"- {len(processing)} still processing: {names}")

    if context.recent_uploads:
        recent = set(context.recent_uploads)
        names = ", ".join(
            doc.file_name for doc in context.available_documents if doc.id in recent
        )
        minutes = int(context.recent_window.total_seconds() // 60)
        lines.append(f"- Recent uploads (last {minutes} min): {names}")

    return "\n".join(lines) + "\n"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
