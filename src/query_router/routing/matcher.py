"""Filename-overlap matching between queries and uploaded documents."""

from __future__ import annotations

import re
import string
from collections.abc import Sequence

from query_router.routing.keywords import KNOWN_EXTENSIONS
from query_router.types import DocumentMatch, DocumentRecord, MatchResult

_EXTENSION_PATTERN = re.compile(
    r"\.(?:" + "|".join(re.escape(ext) for ext in KNOWN_EXTENSIONS) + r")$"
)
_PARENTHETICAL_PATTERN = re.compile(r"\([^)]*\)")
_FILENAME_SPLIT_PATTERN = re.compile(r"[\s_-]+")

EXACT_MATCH_WEIGHT = 0.3
SINGLE_WORD_WEIGHT = 0.3
MULTI_WORD_WEIGHT = 0.5

_MIN_QUERY_WORD_LENGTH = 3
_MIN_FILENAME_WORD_LENGTH = 2
_MIN_SINGLE_WORD_INCLUDE_LENGTH = 4


def base_name(file_name: str) -> str:
    """Normalize a filename into the unit used for matching.

    `"Untitled design (34).png"` becomes `"untitled design"`: lowercase,
    parenthetical disambiguators removed, a known extension stripped and
    whitespace collapsed.
    """

    lowered = _PARENTHETICAL_PATTERN.sub(" ", file_name.lower())
    lowered = " ".join(lowered.split())
    lowered = _EXTENSION_PATTERN.sub("", lowered)
    return " ".join(lowered.split())


def match_best_document(
    query: str, documents: Sequence[DocumentRecord] | None
) -> DocumentMatch | None:
    """Return the first document the query references, if any.

    Documents are scanned in catalog order and the first one satisfying any
    rule wins, so catalog order decides which filename is reported.
    """

    if not documents:
        return None

    lower_query = query.lower()
    query_words = _query_words(query, allow_acronyms=True)
    long_query_words = _query_words(query, allow_acronyms=False)

    for document in documents:
        score = _score_document(lower_query, query_words, long_query_words, document)
        if score > 0.0:
            return DocumentMatch(id=document.id, file_name=document.file_name, score=score)
    return None


def get_matching_document_ids(
    query: str, documents: Sequence[DocumentRecord] | None
) -> list[str]:
    """Return ids of every document the query plausibly refers to.

    Unlike `match_best_document` each document is evaluated independently.
    """

    if not documents:
        return []

    lower_query = query.lower()
    stripped_query = lower_query.strip()
    query_words = _query_words(query, allow_acronyms=False)

    matching_ids: list[str] = []
    for document in documents:
        name = base_name(document.file_name)
        if not name:
            continue

        if name in lower_query or (stripped_query and stripped_query in name):
            matching_ids.append(document.id)
            continue

        overlap = _overlapping_words(_filename_words(name), query_words)
        if len(overlap) >= 2 or (
            len(overlap) == 1 and len(overlap[0]) >= _MIN_SINGLE_WORD_INCLUDE_LENGTH
        ):
            matching_ids.append(document.id)

    return matching_ids


def match_documents(
    query: str, documents: Sequence[DocumentRecord] | None
) -> MatchResult:
    return MatchResult(
        matched_ids=get_matching_document_ids(query, documents),
        best_match=match_best_document(query, documents),
    )


def _score_document(
    lower_query: str,
    query_words: list[str],
    long_query_words: list[str],
    document: DocumentRecord,
) -> float:
    name = base_name(document.file_name)
    if not name:
        return 0.0

    score = 0.0
    if name in lower_query:
        score = EXACT_MATCH_WEIGHT

    file_words = _filename_words(name)
    overlap = _overlapping_words(file_words, query_words)
    if len(overlap) >= 2:
        score = max(score, MULTI_WORD_WEIGHT)
    elif len(overlap) == 1:
        score = max(score, SINGLE_WORD_WEIGHT)

    # Filename words need not be adjacent in the query.
    if len(long_query_words) >= 2:
        if len(_overlapping_words(file_words, long_query_words)) >= 2:
            score = max(score, MULTI_WORD_WEIGHT)

    return score


def _query_words(query: str, *, allow_acronyms: bool) -> list[str]:
    if len(query.strip()) < _MIN_QUERY_WORD_LENGTH:
        return []

    words: list[str] = []
    for raw in query.split():
        token = raw.strip(string.punctuation)
        lowered = token.lower()
        if len(lowered) >= _MIN_QUERY_WORD_LENGTH:
            words.append(lowered)
        elif allow_acronyms and len(token) == 2 and _looks_like_acronym(token):
            words.append(lowered)
    return words


def _looks_like_acronym(token: str) -> bool:
    return any(char.isupper() for char in token)


def _filename_words(name: str) -> list[str]:
    return [
        word
        for word in _FILENAME_SPLIT_PATTERN.split(name)
        if len(word) >= _MIN_FILENAME_WORD_LENGTH
    ]


def _overlapping_words(file_words: list[str], query_words: list[str]) -> list[str]:
    return [
        word
        for word in file_words
        if any(word in query_word or query_word in word for query_word in query_words)
    ]
