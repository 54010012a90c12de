"""Query routing package."""

from .config import ClassifierConfig, RouterConfig
from .routing.classifier import QueryClassifier, classify_query
from .routing.matcher import get_matching_document_ids, match_best_document, match_documents
from .types import DocumentRecord, Intent, QueryClassification

__all__ = [
    "ClassifierConfig",
    "DocumentRecord",
    "Intent",
    "QueryClassification",
    "QueryClassifier",
    "RouterConfig",
    "classify_query",
    "get_matching_document_ids",
    "match_best_document",
    "match_documents",
]
