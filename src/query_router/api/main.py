"""FastAPI entrypoint for classify/match/route/trace endpoints."""

from __future__ import annotations

import os
from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from query_router.agent.registry import ToolRegistry
from query_router.agent.router import QueryRouter
from query_router.agent.tools import register_routing_tools
from query_router.config import ClassifierConfig, RouterConfig
from query_router.obs.tracing import TraceStore
from query_router.routing.classifier import QueryClassifier
from query_router.routing.context import build_document_context, format_document_context
from query_router.routing.matcher import match_documents
from query_router.types import DocumentRecord


class DocumentPayload(BaseModel):
    id: str = Field(min_length=1)
    file_name: str
    status: str = "completed"
    stage: str = "unknown"
    uploaded_at: datetime | None = None
    file_type: str | None = None

    def to_record(self) -> DocumentRecord:
        return DocumentRecord(
            id=self.id,
            file_name=self.file_name,
            status=self.status,
            stage=self.stage,
            uploaded_at=self.uploaded_at,
            file_type=self.file_type,
        )


class ClassifyRequest(BaseModel):
    query: str
    documents: list[DocumentPayload] | None = None


class MatchRequest(BaseModel):
    query: str
    documents: list[DocumentPayload] = Field(default_factory=list)


class ContextRequest(BaseModel):
    documents: list[DocumentPayload] = Field(default_factory=list)


class RouteRequest(BaseModel):
    query: str = Field(min_length=1)
    documents: list[DocumentPayload] = Field(default_factory=list)
    user_id: str | None = None


def _records(documents: list[DocumentPayload] | None) -> list[DocumentRecord] | None:
    if documents is None:
        return None
    return [document.to_record() for document in documents]


def create_app(config: RouterConfig | None = None) -> FastAPI:
    """Build the API with its own tool registry, router and trace store.

    Without a config, the memory database path comes from `QUERY_ROUTER_DB`.
    """

    router_config = config or RouterConfig(
        sqlite_path=os.getenv("QUERY_ROUTER_DB", "query_router.db")
    )
    classifier = QueryClassifier(ClassifierConfig())
    registry = ToolRegistry()
    register_routing_tools(registry, sqlite_path=router_config.sqlite_path)

    trace_store = TraceStore()
    router = QueryRouter(
        tool_registry=registry,
        trace_store=trace_store,
        classifier=classifier,
        config=router_config,
    )

    api = FastAPI(title="Query Router", version="0.1.0")

    @api.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "tools": [spec.name for spec in registry.specs()],
            "trace_count": len(trace_store.list_recent(limit=1000)),
        }

    @api.post("/classify")
    def classify(request: ClassifyRequest) -> dict[str, Any]:
        classification = classifier.classify(request.query, _records(request.documents))
        return asdict(classification)

    @api.post("/documents/match")
    def documents_match(request: MatchRequest) -> dict[str, Any]:
        return asdict(match_documents(request.query, _records(request.documents)))

    @api.post("/documents/context")
    def documents_context(request: ContextRequest) -> dict[str, Any]:
        context = build_document_context(
            _records(request.documents),
            recent_window=timedelta(seconds=router_config.recent_upload_window_seconds),
        )
        return {
            "total_documents": len(context.available_documents),
            "processing_documents": context.processing_documents,
            "ready_documents": context.ready_documents,
            "failed_documents": context.failed_documents,
            "recent_uploads": context.recent_uploads,
            "summary": format_document_context(context),
        }

    @api.post("/route")
    def route(request: RouteRequest) -> dict[str, Any]:
        try:
            return router.route(
                request.query,
                _records(request.documents),
                user_id=request.user_id,
            )
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @api.get("/traces")
    def traces(limit: int = Query(default=20, ge=1, le=1000)) -> dict[str, Any]:
        records = [asdict(record) for record in trace_store.list_recent(limit=limit)]
        return {"items": records}

    @api.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @api.get("/metrics")
    def metrics() -> dict[str, Any]:
        return trace_store.summary()

    return api


app = create_app()
