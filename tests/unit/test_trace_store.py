import pytest

from query_router.obs.tracing import TraceStore
from query_router.types import Intent, QueryClassification, QueryContext, ToolTrace


def _classification(intent: Intent = Intent.WEB) -> QueryClassification:
    context = QueryContext(
        mentions_document=False,
        mentions_file=False,
        mentions_upload=False,
        is_question=False,
        keywords=[],
    )
    return QueryClassification(
        intent=intent, confidence=0.5, suggested_tool="web_search", context=context
    )


def _store(count: int) -> TraceStore:
    store = TraceStore()
    for idx in range(count):
        store.create_record(
            query=f"query {idx}",
            classification=_classification(),
            tool_used="web_search",
            fallback_used=False,
            tool_traces=[ToolTrace("web_search", {"query": f"query {idx}"}, "[1] hit", 1.0)],
            latency_ms=float(idx),
        )
    return store


@pytest.mark.parametrize("limit", [0, -1, -20])
def test_non_positive_limit_returns_no_records(limit: int) -> None:
    assert _store(3).list_recent(limit=limit) == []


def test_list_recent_returns_newest_records_in_order() -> None:
    store = _store(5)

    assert [record.query for record in store.list_recent(limit=2)] == ["query 3", "query 4"]
    assert len(store.list_recent(limit=100)) == 5


def test_summary_on_empty_store() -> None:
    assert TraceStore().summary()["total_requests"] == 0


def test_get_unknown_trace_raises_key_error() -> None:
    with pytest.raises(KeyError):
        TraceStore().get("missing")
