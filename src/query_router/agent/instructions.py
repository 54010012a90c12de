"""Routing instructions injected ahead of the user message."""

from __future__ import annotations

from query_router.routing.context import DocumentContext, format_document_context
from query_router.routing.matcher import get_matching_document_ids
from query_router.types import QueryClassification

_ROUTING_RULE = """
=== CRITICAL ROUTING RULE ===
- User has {count} document(s) available
- BEFORE using ANY other tool (web_search, etc.), you MUST check if the query can be answered from uploaded documents
- Use search_documents tool FIRST for ANY query that might relate to uploaded content
- Only use web_search if search_documents returns no relevant results
""".strip()

_READY_ACTION = """
=== ACTION REQUIRED - HIGHEST PRIORITY ===
- {count} document(s) are ready for search
- YOU MUST use the search_documents tool IMMEDIATELY
- DO NOT ask for clarification - use search_documents with the user's query
- If search_documents returns results, use those results - do NOT fall back to web search
""".strip()

_PROCESSING_ACTION = """
=== DOCUMENT STATUS ===
- {count} document(s) are still processing
- Try search_documents first - it will check status and may still find results
- Inform user if documents are still processing
""".strip()

_PENDING_ACTION = """
=== ACTION REQUIRED ===
- User has documents but they may not be ready
- Try search_documents tool FIRST - it will handle the status appropriately
- DO NOT ask for clarification about which document - search all available documents
- Only use web_search if search_documents confirms no documents are ready
""".strip()

ROUTE_SUFFIX = "Based on this context, route the user's query appropriately."


def build_routing_instructions(
    query: str,
    classification: QueryClassification,
    context: DocumentContext,
) -> str:
    """Render the routing block for a user who has documents.

    Returns an empty string when the catalog is empty; the orchestrator then
    routes on the classification alone.
    """

    documents = context.available_documents
    if not documents:
        return ""

    sections = [
        "=== CURRENT USER CONTEXT ===\n" + format_document_context(context).rstrip(),
        _ROUTING_RULE.format(count=len(documents)),
        _query_analysis(query, classification, context),
    ]

    if context.ready_documents > 0:
        sections.append(_READY_ACTION.format(count=context.ready_documents))
    elif context.processing_documents > 0:
        sections.append(_PROCESSING_ACTION.format(count=context.processing_documents))
    else:
        sections.append(_PENDING_ACTION)

    sections.append(ROUTE_SUFFIX)
    return "\n\n".join(sections)


def _query_analysis(
    query: str,
    classification: QueryClassification,
    context: DocumentContext,
) -> str:
    lines = [
        "=== QUERY ANALYSIS ===",
        f"- User query intent: {classification.intent.value} "
        f"(confidence: {classification.confidence:.2f})",
        f"- Suggested tool: {classification.suggested_tool}",
    ]
    if classification.context.document_name:
        lines.append(f"- User mentioned document: {classification.context.document_name}")
    if classification.context.mentions_document or classification.context.mentions_file:
        lines.append("- Query mentions documents/files - treat this as a DOCUMENT QUERY")

    matched = set(get_matching_document_ids(query, context.available_documents))
    if matched:
        names = ", ".join(
            doc.file_name for doc in context.available_documents if doc.id in matched
        )
        lines.append(f"- Query likely refers to: {names}")
        lines.append("- YOU MUST use search_documents with these document(s)")
    return "\n".join(lines)
