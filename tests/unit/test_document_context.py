from datetime import datetime, timedelta, timezone

from query_router.routing.context import build_document_context, format_document_context
from query_router.types import DocumentRecord

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _catalog() -> list[DocumentRecord]:
    return [
        DocumentRecord("a", "a.pdf", "completed", stage="indexed", uploaded_at=NOW - timedelta(minutes=1)),
        DocumentRecord("b", "b.pdf", "processing", uploaded_at=NOW - timedelta(minutes=30)),
        DocumentRecord("c", "c.pdf", "queued"),
        DocumentRecord("d", "d.pdf", "failed"),
        DocumentRecord("e", "e.pdf", "completed", stage="unknown", uploaded_at=NOW - timedelta(minutes=10)),
        DocumentRecord("f", "f.pdf", "completed", stage="injected"),
    ]


def test_context_counts_by_status_and_stage() -> None:
    context = build_document_context(_catalog(), now=NOW)

    assert context.ready_documents == 2
    assert context.processing_documents == 2
    assert context.failed_documents == 1
    assert context.recent_uploads == ["a"]
    assert len(context.available_documents) == 6


def test_naive_timestamps_are_treated_as_utc() -> None:
    naive = DocumentRecord(
        "n", "n.pdf", "completed", uploaded_at=datetime(2025, 3, 1, 11, 58)
    )

    context = build_document_context([naive], now=NOW)

    assert context.recent_uploads == ["n"]


def test_recent_window_is_configurable() -> None:
    context = build_document_context(_catalog(), now=NOW, recent_window=timedelta(minutes=15))

    assert context.recent_uploads == ["a", "e"]


def test_format_empty_context() -> None:
    assert format_document_context(build_document_context([])) == "User has no uploaded documents."
    assert format_document_context(build_document_context(None)) == "User has no uploaded documents."


def test_format_lists_ready_processing_and_recent_documents() -> None:
    text = format_document_context(build_document_context(_catalog(), now=NOW))

    assert text == (
        "User has 6 document(s):\n"
        "- 2 ready for search: a.pdf, f.pdf\n"
        "- 2 still processing: b.pdf, c.pdf\n"
        "- Recent uploads (last 5 min): a.pdf\n"
    )
