"""Configuration models for the query routing engine."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ClassifierConfig(BaseModel):
    """Configures intent thresholds and fixed fallback confidences."""

    document_threshold: float = Field(default=0.5, ge=0.0)
    hybrid_threshold: float = Field(default=0.3, ge=0.0)
    memory_confidence: float = Field(default=0.7, ge=0.0)
    command_confidence: float = Field(default=0.8, ge=0.0)
    web_confidence: float = Field(default=0.5, ge=0.0)


class RouterConfig(BaseModel):
    """Configures tool routing, memory persistence and latency targets."""

    sqlite_path: str = "query_router.db"
    search_top_k: int = Field(default=5, ge=1, le=20)
    memory_query_limit: int = Field(default=5, ge=1)
    recent_upload_window_seconds: float = Field(default=300.0, gt=0.0)
    target_latency_ms: float = Field(default=50.0, gt=0.0)
