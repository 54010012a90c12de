import pytest

from query_router.routing.matcher import (
    base_name,
    get_matching_document_ids,
    match_best_document,
    match_documents,
)
from query_router.types import DocumentRecord


def _doc(doc_id: str, file_name: str) -> DocumentRecord:
    return DocumentRecord(id=doc_id, file_name=file_name, status="completed")


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("Untitled design (34).png", "untitled design"),
        ("UAOL Report (12).pdf", "uaol report"),
        ("Q3_budget-final.DOCX", "q3_budget-final"),
        ("notes", "notes"),
        ("archive.tar.gz", "archive.tar.gz"),
    ],
)
def test_base_name_strips_extension_and_parentheticals(file_name: str, expected: str) -> None:
    assert base_name(file_name) == expected


def test_single_best_is_first_match_wins() -> None:
    docs = [_doc("a", "Budget Summary.pdf"), _doc("b", "Budget Forecast.pdf")]

    best = match_best_document("show the budget numbers", docs)

    assert best is not None
    assert best.id == "a"
    assert best.file_name == "Budget Summary.pdf"
    assert best.score == pytest.approx(0.3)

    reversed_best = match_best_document("show the budget numbers", list(reversed(docs)))
    assert reversed_best is not None
    assert reversed_best.id == "b"


def test_two_filename_words_score_higher_than_one() -> None:
    docs = [_doc("a", "Budget Summary.pdf")]

    best = match_best_document("what is in the budget summary", docs)

    assert best is not None
    assert best.score == pytest.approx(0.5)


def test_uppercase_two_letter_words_count_as_acronyms() -> None:
    docs = [_doc("q", "Q3 Forecast.pdf")]

    acronym = match_best_document("numbers in Q3", docs)
    assert acronym is not None
    assert acronym.score == pytest.approx(0.3)

    assert match_best_document("numbers in q3", docs) is None


def test_short_query_only_matches_exact_substring() -> None:
    assert match_best_document("AB", [_doc("x", "abc report.pdf")]) is None

    exact = match_best_document("ab", [_doc("y", "ab.pdf")])
    assert exact is not None
    assert exact.id == "y"


def test_empty_or_missing_catalog_never_matches() -> None:
    assert match_best_document("budget", []) is None
    assert match_best_document("budget", None) is None
    assert get_matching_document_ids("budget", []) == []
    assert get_matching_document_ids("budget", None) == []


def test_multi_match_evaluates_every_document() -> None:
    docs = [
        _doc("1", "Budget Summary.pdf"),
        _doc("2", "UAOL Report.pdf"),
        _doc("3", "Travel Receipts.png"),
    ]

    assert get_matching_document_ids("tell me about budget and UAOL", docs) == ["1", "2"]


def test_multi_match_accepts_query_inside_filename() -> None:
    docs = [_doc("2", "UAOL Report.pdf")]

    assert get_matching_document_ids("Report", docs) == ["2"]


def test_multi_match_requires_long_single_word() -> None:
    docs = [_doc("t", "Tax Notes.txt")]

    assert get_matching_document_ids("my tax stuff", docs) == []
    best = match_best_document("my tax stuff", docs)
    assert best is not None
    assert best.id == "t"


def test_nameless_documents_are_skipped() -> None:
    docs = [_doc("empty", "().pdf"), _doc("real", "Budget Summary.pdf")]

    best = match_best_document("budget summary please", docs)

    assert best is not None
    assert best.id == "real"
    assert get_matching_document_ids("budget summary please", docs) == ["real"]


def test_match_documents_combines_both_forms() -> None:
    docs = [_doc("a", "Budget Summary.pdf"), _doc("b", "Budget Forecast.pdf")]

    result = match_documents("show the budget numbers", docs)

    assert result.matched_ids == ["a", "b"]
    assert result.best_match is not None
    assert result.best_match.id == "a"
