"""Keyword and pattern tables driving query classification."""

from __future__ import annotations

import re
from dataclasses import dataclass

DOCUMENT_KEYWORDS: tuple[str, ...] = (
    "document",
    "documents",
    "uploaded",
    "file",
    "files",
    "pdf",
    "pdfs",
    "what i uploaded",
    "my document",
    "my documents",
    "the document",
    "that document",
    "tell me about",
    "what does it say",
    "what can you tell me",
    "analyze",
    "search my documents",
    "find in my documents",
    "in my document",
    "from my document",
    "document says",
    "document contains",
    "document mentions",
    "what's in",
    "what is in",
    "content of",
    "information in",
)

FILE_KEYWORDS: tuple[str, ...] = (
    "file",
    "files",
    "upload",
    "uploaded",
    "attachment",
    "attachments",
)

DOCUMENT_QUESTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"what (does|can|is|are).*say", re.IGNORECASE),
    re.compile(r"tell me (about|what).*", re.IGNORECASE),
    re.compile(r"what.*(about|in|from).*", re.IGNORECASE),
    re.compile(r"search.*(for|in|my).*", re.IGNORECASE),
    re.compile(r"find.*(in|from).*", re.IGNORECASE),
    re.compile(r"analyze.*", re.IGNORECASE),
    re.compile(r"summarize.*", re.IGNORECASE),
)

ABOUT_PHRASES: tuple[str, ...] = ("about",)
TELL_ME_PHRASES: tuple[str, ...] = ("tell me", "what can you tell")
DETAILS_PHRASES: tuple[str, ...] = ("details on", "details about", "what are the details")
SEARCH_DOCUMENTS_PHRASES: tuple[str, ...] = ("search my documents", "find in my documents")

STORE_MEMORY_PHRASES: tuple[str, ...] = ("remember", "store", "save")
QUERY_MEMORY_PHRASES: tuple[str, ...] = ("what did", "what i told")
COMMAND_PHRASES: tuple[str, ...] = ("command",)
UPLOAD_PHRASES: tuple[str, ...] = ("upload",)

# "the UAOL document", "budget files" -> captures the word naming the document.
NAMED_DOCUMENT_PATTERN = re.compile(r"\b(\w{2,})\s+(?:document|documents|file|files|pdf)\b")

KNOWN_EXTENSIONS: tuple[str, ...] = (
    "pdf",
    "doc",
    "docx",
    "txt",
    "csv",
    "png",
    "jpg",
    "jpeg",
    "gif",
    "webp",
)


@dataclass(frozen=True, slots=True)
class KeywordTables:
    """Bundle of the tables a classifier consults.

    Defaults are the production tables; tests and experiments can swap any
    single table without touching the scoring code.
    """

    document_keywords: tuple[str, ...] = DOCUMENT_KEYWORDS
    file_keywords: tuple[str, ...] = FILE_KEYWORDS
    question_patterns: tuple[re.Pattern[str], ...] = DOCUMENT_QUESTION_PATTERNS
    about_phrases: tuple[str, ...] = ABOUT_PHRASES
    tell_me_phrases: tuple[str, ...] = TELL_ME_PHRASES
    details_phrases: tuple[str, ...] = DETAILS_PHRASES
    search_documents_phrases: tuple[str, ...] = SEARCH_DOCUMENTS_PHRASES
    store_memory_phrases: tuple[str, ...] = STORE_MEMORY_PHRASES
    query_memory_phrases: tuple[str, ...] = QUERY_MEMORY_PHRASES
    command_phrases: tuple[str, ...] = COMMAND_PHRASES
    upload_phrases: tuple[str, ...] = UPLOAD_PHRASES
    named_document_pattern: re.Pattern[str] = NAMED_DOCUMENT_PATTERN


DEFAULT_TABLES = KeywordTables()


def contains_any(text: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in text for phrase in phrases)
