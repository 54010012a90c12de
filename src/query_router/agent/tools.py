"""Routing tool implementations for the orchestrator."""

from __future__ import annotations

import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from query_router.agent.registry import ToolRegistry, ToolSpec
from query_router.routing.classifier import (
    MCP_PROXY_TOOL,
    QUERY_MEMORY_TOOL,
    SEARCH_DOCUMENTS_TOOL,
    STORE_MEMORY_TOOL,
    WEB_SEARCH_TOOL,
)

NO_RESULTS = "NO_RESULTS"
NOT_FOUND = "NOT_FOUND"
UNAVAILABLE = "UNAVAILABLE:"

_MEMORY_TERM_PATTERN = re.compile(r"\w+", flags=re.UNICODE)
_MEMORY_STOPWORDS = frozenset(
    {"what", "told", "tell", "said", "about", "remember", "that", "this", "with", "your"}
)


class DocumentSearchBackend(Protocol):
    def __call__(self, query: str, *, document_ids: list[str], top_k: int) -> list[str]:
        """Return snippets from the user's documents, best first."""


class WebSearchBackend(Protocol):
    def __call__(self, query: str, *, top_k: int) -> list[str]:
        """Return web result snippets, best first."""


class CommandBackend(Protocol):
    def __call__(self, command: str, args: list[str]) -> str:
        """Run a slash command through the MCP proxy."""


class SearchDocumentsInput(BaseModel):
    query: str = Field(min_length=1)
    document_ids: list[str] = Field(default_factory=list)
    document_name: str | None = None
    top_k: int = Field(default=5, ge=1, le=20)


class WebSearchInput(BaseModel):
    query: str = Field(min_length=1)
    top_k: int = Field(default=5, ge=1, le=20)


class McpProxyInput(BaseModel):
    command: str = Field(min_length=1)
    args: list[str] = Field(default_factory=list)


class StoreMemoryInput(BaseModel):
    content: str = Field(min_length=1)
    user_id: str = Field(default="default", min_length=1)


class QueryMemoryInput(BaseModel):
    query: str = Field(min_length=1)
    user_id: str = Field(default="default", min_length=1)
    limit: int = Field(default=5, ge=1, le=50)


def register_routing_tools(
    registry: ToolRegistry,
    *,
    search_documents: DocumentSearchBackend | None = None,
    web_search: WebSearchBackend | None = None,
    mcp_proxy: CommandBackend | None = None,
    sqlite_path: str = "query_router.db",
) -> None:
    """Register every tool the classifier can suggest.

    Tools:
    - `search_documents`: delegates to the document search backend.
    - `web_search`: delegates to the web search backend.
    - `mcp_proxy`: forwards slash commands to the command backend.
    - `store_memory` / `query_memory`: local SQLite memory store.

    A tool whose backend is not supplied answers `UNAVAILABLE: <name>`.
    The memory table is created on first use.
    """

    db_file = Path(sqlite_path)

    def _search_documents(input_data: SearchDocumentsInput) -> str:
        if search_documents is None:
            return f"{UNAVAILABLE} {SEARCH_DOCUMENTS_TOOL}"
        hits = search_documents(
            input_data.query,
            document_ids=input_data.document_ids,
            top_k=input_data.top_k,
        )
        return _format_hits(hits)

    def _web_search(input_data: WebSearchInput) -> str:
        if web_search is None:
            return f"{UNAVAILABLE} {WEB_SEARCH_TOOL}"
        return _format_hits(web_search(input_data.query, top_k=input_data.top_k))

    def _mcp_proxy(input_data: McpProxyInput) -> str:
        if mcp_proxy is None:
            return f"{UNAVAILABLE} {MCP_PROXY_TOOL}"
        return mcp_proxy(input_data.command, input_data.args)

    def _store_memory(input_data: StoreMemoryInput) -> str:
        _ensure_memory_table(db_file)
        with sqlite3.connect(db_file) as conn:
            conn.execute(
                "INSERT INTO memories(user_id, content, created_at) VALUES(?, ?, ?)",
                (
                    input_data.user_id,
                    input_data.content,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
        return "OK"

    def _query_memory(input_data: QueryMemoryInput) -> str:
        _ensure_memory_table(db_file)
        terms = _memory_terms(input_data.query)
        sql = "SELECT content FROM memories WHERE user_id = ?"
        params: list[object] = [input_data.user_id]
        if terms:
            sql += " AND (" + " OR ".join("lower(content) LIKE ?" for _ in terms) + ")"
            params.extend(f"%{term}%" for term in terms)
        sql += " ORDER BY id DESC LIMIT ?"
        params.append(input_data.limit)

        with sqlite3.connect(db_file) as conn:
            rows = conn.execute(sql, params).fetchall()
        if not rows:
            return NOT_FOUND
        return "\n".join(f"- {row[0]}" for row in rows)

    registry.register(
        ToolSpec(
            name=SEARCH_DOCUMENTS_TOOL,
            description="Search the user's uploaded documents.",
            args_schema=SearchDocumentsInput,
            handler=_search_documents,
            empty_markers=(NO_RESULTS, UNAVAILABLE),
            tags=["document", "rag"],
        )
    )
    registry.register(
        ToolSpec(
            name=WEB_SEARCH_TOOL,
            description="Search the web for current information.",
            args_schema=WebSearchInput,
            handler=_web_search,
            empty_markers=(NO_RESULTS, UNAVAILABLE),
            tags=["web"],
        )
    )
    registry.register(
        ToolSpec(
            name=MCP_PROXY_TOOL,
            description="Run a slash command through the MCP proxy.",
            args_schema=McpProxyInput,
            handler=_mcp_proxy,
            empty_markers=(UNAVAILABLE,),
            tags=["command"],
        )
    )
    registry.register(
        ToolSpec(
            name=STORE_MEMORY_TOOL,
            description="Remember a fact the user shared.",
            args_schema=StoreMemoryInput,
            handler=_store_memory,
            tags=["memory"],
        )
    )
    registry.register(
        ToolSpec(
            name=QUERY_MEMORY_TOOL,
            description="Recall facts the user shared earlier.",
            args_schema=QueryMemoryInput,
            handler=_query_memory,
            tags=["memory"],
        )
    )


def _format_hits(hits: list[str]) -> str:
    lines = []
    for idx, hit in enumerate(hits, start=1):
        snippet = _truncate(hit.replace("\n", " "), 220)
        lines.append(f"[{idx}] {snippet}")
    if not lines:
        return NO_RESULTS
    return "\n".join(lines)


def _memory_terms(query: str) -> list[str]:
    terms: list[str] = []
    for term in _MEMORY_TERM_PATTERN.findall(query.lower()):
        if len(term) >= 4 and term not in _MEMORY_STOPWORDS and term not in terms:
            terms.append(term)
    return terms


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def _ensure_memory_table(db_path: Path) -> None:
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS memories ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "user_id TEXT NOT NULL, "
            "content TEXT NOT NULL, "
            "created_at TEXT NOT NULL)"
        )
        conn.commit()
