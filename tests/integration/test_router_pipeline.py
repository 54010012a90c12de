import threading

from query_router.agent.registry import ToolRegistry
from query_router.agent.router import QueryRouter
from query_router.agent.tools import register_routing_tools
from query_router.obs.tracing import TraceStore
from query_router.types import DocumentRecord


class _Backends:
    def __init__(self, document_hits: list[str] | None = None) -> None:
        self.document_hits = document_hits or []
        self.document_calls: list[tuple[str, list[str]]] = []
        self.web_calls: list[str] = []
        self.commands: list[tuple[str, list[str]]] = []

    def search_documents(self, query: str, *, document_ids: list[str], top_k: int) -> list[str]:
        self.document_calls.append((query, document_ids))
        return self.document_hits

    def web_search(self, query: str, *, top_k: int) -> list[str]:
        self.web_calls.append(query)
        return [f"web result for {query}"]

    def mcp_proxy(self, command: str, args: list[str]) -> str:
        self.commands.append((command, args))
        return "done"


def _router(tmp_path, backends: _Backends) -> tuple[QueryRouter, TraceStore]:
    registry = ToolRegistry()
    register_routing_tools(
        registry,
        search_documents=backends.search_documents,
        web_search=backends.web_search,
        mcp_proxy=backends.mcp_proxy,
        sqlite_path=str(tmp_path / "memory.db"),
    )
    trace_store = TraceStore()
    return QueryRouter(tool_registry=registry, trace_store=trace_store), trace_store


def test_document_query_searches_matched_documents(tmp_path) -> None:
    backends = _Backends(document_hits=["UAOL revenue was 4.2M in 2024."])
    router, trace_store = _router(tmp_path, backends)
    docs = [
        DocumentRecord("1", "UAOL Report (12).pdf", "completed", stage="indexed"),
        DocumentRecord("2", "Travel Receipts.png", "completed", stage="indexed"),
    ]

    result = router.route("what are the details on the UAOL document?", docs)

    assert result["intent"] == "document"
    assert result["tool_used"] == "search_documents"
    assert result["fallback_used"] is False
    assert result["document_name"] == "UAOL Report (12).pdf"
    assert result["output"] == "[1] UAOL revenue was 4.2M in 2024."
    assert backends.document_calls == [("what are the details on the UAOL document?", ["1"])]
    assert backends.web_calls == []
    assert "User mentioned document: UAOL Report (12).pdf" in result["instructions"]

    trace = trace_store.get(result["trace_id"])
    assert trace.intent == "document"
    assert [tool.name for tool in trace.tool_traces] == ["search_documents"]


def test_hybrid_query_falls_back_to_web_search(tmp_path) -> None:
    backends = _Backends(document_hits=[])
    router, trace_store = _router(tmp_path, backends)
    docs = [DocumentRecord("1", "Budget Summary.pdf", "completed", stage="indexed")]

    result = router.route("hello world", docs)

    assert result["intent"] == "hybrid"
    assert result["suggested_tool"] == "search_documents"
    assert result["tool_used"] == "web_search"
    assert result["fallback_used"] is True
    assert result["output"] == "[1] web result for hello world"
    assert backends.web_calls == ["hello world"]

    trace = trace_store.get(result["trace_id"])
    assert [tool.name for tool in trace.tool_traces] == ["search_documents", "web_search"]
    assert trace_store.summary()["fallback_rate"] == 1.0


def test_slash_command_is_parsed_for_proxy(tmp_path) -> None:
    backends = _Backends()
    router, _ = _router(tmp_path, backends)

    result = router.route("/deploy 'my app' --force")

    assert result["intent"] == "command"
    assert result["output"] == "done"
    assert backends.commands == [("deploy", ["my app", "--force"])]
    assert result["instructions"] == ""


def test_memory_round_trip_through_router(tmp_path) -> None:
    router, trace_store = _router(tmp_path, _Backends())

    stored = router.route("remember that I like coffee", user_id="u1")
    recalled = router.route("what i told you of coffee", user_id="u1")

    assert stored["tool_used"] == "store_memory"
    assert stored["output"] == "OK"
    assert recalled["tool_used"] == "query_memory"
    assert recalled["output"] == "- remember that I like coffee"

    summary = trace_store.summary()
    assert summary["total_requests"] == 2
    assert summary["intent_counts"] == {"memory": 2}
    assert summary["tool_counts"] == {"store_memory": 1, "query_memory": 1}


def test_plain_query_goes_to_web_search(tmp_path) -> None:
    backends = _Backends()
    router, _ = _router(tmp_path, backends)

    result = router.route("latest football scores")

    assert result["intent"] == "web"
    assert result["tool_used"] == "web_search"
    assert result["fallback_used"] is False
    assert backends.document_calls == []


def test_hybrid_query_falls_back_when_document_search_is_unwired(tmp_path) -> None:
    backends = _Backends()
    registry = ToolRegistry()
    register_routing_tools(
        registry,
        web_search=backends.web_search,
        sqlite_path=str(tmp_path / "memory.db"),
    )
    trace_store = TraceStore()
    router = QueryRouter(tool_registry=registry, trace_store=trace_store)
    docs = [DocumentRecord("1", "Budget Summary.pdf", "completed", stage="indexed")]

    result = router.route("hello world", docs)

    assert result["intent"] == "hybrid"
    assert result["tool_used"] == "web_search"
    assert result["fallback_used"] is True
    assert result["output"] == "[1] web result for hello world"

    first, second = trace_store.get(result["trace_id"]).tool_traces
    assert first.output_preview == "UNAVAILABLE: search_documents"
    assert first.empty is True
    assert second.empty is False


def test_concurrent_routes_record_only_their_own_tool_calls(tmp_path) -> None:
    gate = threading.Barrier(2, timeout=5)

    class _OverlappingBackends(_Backends):
        def web_search(self, query: str, *, top_k: int) -> list[str]:
            # Both requests are inside a tool call at the same time.
            gate.wait()
            return super().web_search(query, top_k=top_k)

    router, trace_store = _router(tmp_path, _OverlappingBackends())
    results: dict[str, dict] = {}
    errors: list[Exception] = []

    def _run(query: str) -> None:
        try:
            results[query] = router.route(query)
        except Exception as exc:
            errors.append(exc)

    queries = ["alpha weather", "beta weather"]
    threads = [threading.Thread(target=_run, args=(query,)) for query in queries]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    for query in queries:
        trace = trace_store.get(results[query]["trace_id"])
        assert [tool.name for tool in trace.tool_traces] == ["web_search"]
        assert trace.tool_traces[0].input_payload["query"] == query
        assert results[query]["output"] == f"[1] web result for {query}"
    assert trace_store.summary()["total_requests"] == 2
