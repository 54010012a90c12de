"""Deterministic router that acts on query classifications."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Sequence
from datetime import timedelta
from typing import Any

from query_router.agent.instructions import build_routing_instructions
from query_router.agent.registry import ToolRegistry
from query_router.config import RouterConfig
from query_router.obs.tracing import Timer, TraceStore
from query_router.routing.classifier import (
    MCP_PROXY_TOOL,
    QUERY_MEMORY_TOOL,
    SEARCH_DOCUMENTS_TOOL,
    STORE_MEMORY_TOOL,
    WEB_SEARCH_TOOL,
    QueryClassifier,
)
from query_router.routing.context import build_document_context
from query_router.types import DocumentRecord, Intent, QueryClassification, ToolTrace

logger = logging.getLogger(__name__)

_DEFAULT_COMMAND = "help"


class QueryRouter:
    """Classifies a message and invokes the suggested tool.

    `hybrid` queries try document search first and fall back to web search
    when the document search comes back empty or has no backend. Every turn
    is recorded in the trace store with only its own tool calls, so one
    router can serve concurrent requests.
    """

    def __init__(
        self,
        *,
        tool_registry: ToolRegistry,
        trace_store: TraceStore,
        classifier: QueryClassifier | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        self.tool_registry = tool_registry
        self.trace_store = trace_store
        self.classifier = classifier or QueryClassifier()
        self.config = config or RouterConfig()

    def route(
        self,
        query: str,
        documents: Sequence[DocumentRecord] | None = None,
        *,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Run one routing turn.

        Returns:
            A payload with the classification fields, the tool actually used,
            its output, whether the hybrid fallback fired, the routing
            instructions for an LLM orchestrator, and trace id / latency.
        """

        catalog = list(documents or [])
        tool_traces: list[ToolTrace] = []
        fallback_used = False

        with Timer() as timer:
            classification = self.classifier.classify(query, catalog)
            tool_used = classification.suggested_tool
            call = self.tool_registry.call(
                tool_used, self._build_payload(query, classification, user_id)
            )
            tool_traces.append(call.trace)
            # Unavailable document search counts as empty for hybrid queries.
            if (
                classification.intent is Intent.HYBRID
                and call.empty
                and self.tool_registry.has(WEB_SEARCH_TOOL)
            ):
                logger.info(
                    "Hybrid query got no document results (%s); falling back to web search",
                    call.trace.output_preview,
                )
                tool_used = WEB_SEARCH_TOOL
                fallback_used = True
                call = self.tool_registry.call(
                    WEB_SEARCH_TOOL,
                    {"query": query, "top_k": self.config.search_top_k},
                )
                tool_traces.append(call.trace)
        output = call.output

        context = build_document_context(
            catalog,
            recent_window=timedelta(seconds=self.config.recent_upload_window_seconds),
        )
        instructions = build_routing_instructions(query, classification, context)

        record = self.trace_store.create_record(
            query=query,
            classification=classification,
            tool_used=tool_used,
            fallback_used=fallback_used,
            tool_traces=tool_traces,
            latency_ms=timer.elapsed_ms,
        )
        logger.info(
            "Routed query: intent=%s confidence=%.2f tool=%s fallback=%s",
            classification.intent.value,
            classification.confidence,
            tool_used,
            fallback_used,
        )

        return {
            "intent": classification.intent.value,
            "confidence": classification.confidence,
            "suggested_tool": classification.suggested_tool,
            "tool_used": tool_used,
            "output": output,
            "fallback_used": fallback_used,
            "document_name": classification.context.document_name,
            "matched_document_ids": list(classification.context.matched_document_ids),
            "instructions": instructions,
            "trace_id": record.trace_id,
            "latency_ms": record.latency_ms,
            "latency_target_met": record.latency_ms <= self.config.target_latency_ms,
        }

    def _build_payload(
        self,
        query: str,
        classification: QueryClassification,
        user_id: str | None,
    ) -> dict[str, Any]:
        tool = classification.suggested_tool
        owner = user_id or "default"

        if tool == SEARCH_DOCUMENTS_TOOL:
            return {
                "query": query,
                "document_ids": list(classification.context.matched_document_ids),
                "document_name": classification.context.document_name,
                "top_k": self.config.search_top_k,
            }
        if tool == MCP_PROXY_TOOL:
            command, args = _parse_command(query)
            return {"command": command, "args": args}
        if tool == STORE_MEMORY_TOOL:
            return {"content": query.strip(), "user_id": owner}
        if tool == QUERY_MEMORY_TOOL:
            return {
                "query": query,
                "user_id": owner,
                "limit": self.config.memory_query_limit,
            }
        return {"query": query, "top_k": self.config.search_top_k}


def _parse_command(query: str) -> tuple[str, list[str]]:
    text = query.strip()
    if not text.startswith("/"):
        return _DEFAULT_COMMAND, [text] if text else []

    body = text[1:]
    try:
        tokens = shlex.split(body)
    except ValueError:
        # Unbalanced quotes: keep the raw whitespace tokens.
        tokens = body.split()
    if not tokens:
        return _DEFAULT_COMMAND, []
    return tokens[0], tokens[1:]
