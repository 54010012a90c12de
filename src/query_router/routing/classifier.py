"""Rule-based query classification for orchestrator routing.

Scores are accumulated additively from independent signals and compared
against fixed absolute thresholds. The score is not clamped and routinely
exceeds 1.0 when several document signals stack; it is only meaningful for
thresholding a single query, never for comparing two queries.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from query_router.config import ClassifierConfig
from query_router.routing.keywords import DEFAULT_TABLES, KeywordTables, contains_any
from query_router.routing.matcher import get_matching_document_ids, match_best_document
from query_router.types import DocumentRecord, Intent, QueryClassification, QueryContext

logger = logging.getLogger(__name__)

KEYWORD_BONUS = 0.5
QUESTION_PATTERN_BONUS = 0.3
DOCUMENT_NAME_BONUS = 0.4
CATALOG_BONUS = 0.3
CATALOG_KEYWORD_BONUS = 0.2
ABOUT_BONUS = 0.2
TELL_ME_BONUS = 0.2
DETAILS_BONUS = 0.3
SEARCH_DOCUMENTS_BONUS = 0.3
NAMED_DOCUMENT_BONUS = 0.4

SEARCH_DOCUMENTS_TOOL = "search_documents"
WEB_SEARCH_TOOL = "web_search"
MCP_PROXY_TOOL = "mcp_proxy"
STORE_MEMORY_TOOL = "store_memory"
QUERY_MEMORY_TOOL = "query_memory"


class QueryClassifier:
    """Classifies a query into an intent and a suggested downstream tool.

    Instances hold only immutable tables and thresholds; `classify` is pure
    and safe to call concurrently.
    """

    def __init__(
        self,
        config: ClassifierConfig | None = None,
        tables: KeywordTables | None = None,
    ) -> None:
        self.config = config or ClassifierConfig()
        self.tables = tables or DEFAULT_TABLES

    def classify(
        self,
        query: str,
        available_documents: Sequence[DocumentRecord] | None = None,
    ) -> QueryClassification:
        tables = self.tables
        documents = list(available_documents or [])
        lower_query = query.lower().strip()

        has_document_keyword = contains_any(lower_query, tables.document_keywords)
        has_file_keyword = contains_any(lower_query, tables.file_keywords)
        mentions_keyword = has_document_keyword or has_file_keyword
        matches_question_pattern = any(
            pattern.search(query) for pattern in tables.question_patterns
        )

        best_match = match_best_document(query, documents)
        document_name = best_match.file_name if best_match is not None else None

        confidence = 0.0
        if best_match is not None:
            confidence += best_match.score
        if mentions_keyword:
            confidence += KEYWORD_BONUS
        if matches_question_pattern:
            confidence += QUESTION_PATTERN_BONUS
        if document_name is not None:
            confidence += DOCUMENT_NAME_BONUS
        if documents:
            confidence += CATALOG_BONUS
            if mentions_keyword:
                confidence += CATALOG_KEYWORD_BONUS
        if mentions_keyword and contains_any(lower_query, tables.about_phrases):
            confidence += ABOUT_BONUS
        if mentions_keyword and contains_any(lower_query, tables.tell_me_phrases):
            confidence += TELL_ME_BONUS
        if mentions_keyword and contains_any(lower_query, tables.details_phrases):
            confidence += DETAILS_BONUS
        if contains_any(lower_query, tables.search_documents_phrases):
            confidence += SEARCH_DOCUMENTS_BONUS
        if documents and self._names_catalog_document(lower_query, documents):
            confidence += NAMED_DOCUMENT_BONUS

        intent, suggested_tool, confidence = self._decide(lower_query, confidence)

        context = QueryContext(
            mentions_document=has_document_keyword,
            mentions_file=has_file_keyword,
            mentions_upload=contains_any(lower_query, tables.upload_phrases),
            is_question=query.strip().endswith("?") or matches_question_pattern,
            keywords=[word for word in lower_query.split() if len(word) > 2],
            document_name=document_name,
            matched_document_ids=get_matching_document_ids(query, documents),
        )

        logger.debug(
            "Query classification: intent=%s confidence=%.2f tool=%s document=%s",
            intent.value,
            confidence,
            suggested_tool,
            document_name,
        )
        return QueryClassification(
            intent=intent,
            confidence=confidence,
            suggested_tool=suggested_tool,
            context=context,
        )

    def _decide(self, lower_query: str, confidence: float) -> tuple[Intent, str, float]:
        config = self.config
        tables = self.tables

        # An explicit slash command is never reinterpreted as a document query.
        if lower_query.startswith("/"):
            return Intent.COMMAND, MCP_PROXY_TOOL, config.command_confidence

        if confidence >= config.document_threshold:
            return Intent.DOCUMENT, SEARCH_DOCUMENTS_TOOL, confidence
        if confidence >= config.hybrid_threshold:
            return Intent.HYBRID, SEARCH_DOCUMENTS_TOOL, confidence

        if contains_any(lower_query, tables.store_memory_phrases):
            return Intent.MEMORY, STORE_MEMORY_TOOL, config.memory_confidence
        if contains_any(lower_query, tables.query_memory_phrases):
            return Intent.MEMORY, QUERY_MEMORY_TOOL, config.memory_confidence
        if contains_any(lower_query, tables.command_phrases):
            return Intent.COMMAND, MCP_PROXY_TOOL, config.command_confidence
        return Intent.WEB, WEB_SEARCH_TOOL, config.web_confidence

    def _names_catalog_document(
        self, lower_query: str, documents: Sequence[DocumentRecord]
    ) -> bool:
        match = self.tables.named_document_pattern.search(lower_query)
        if match is None:
            return False
        named = match.group(1)
        return any(named in document.file_name.lower() for document in documents)


def classify_query(
    query: str,
    available_documents: Sequence[DocumentRecord] | None = None,
) -> QueryClassification:
    """Classify `query` with the default tables and thresholds."""

    return QueryClassifier().classify(query, available_documents)
