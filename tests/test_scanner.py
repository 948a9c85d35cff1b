"""Tests for the lightweight session document scanner."""

from __future__ import annotations

from chat_session_search.scanner import (
    MAX_FALLBACK_TITLE_LENGTH,
    count_messages,
    extract_title_from_content,
    first_quoted_value,
    truncate_string,
)


# ---------------------------------------------------------------------------
# first_quoted_value
# ---------------------------------------------------------------------------


class TestFirstQuotedValue:
    """Tests for the "first quoted value after key" contract."""

    def test_compact_document(self) -> None:
        assert first_quoted_value('{"customTitle":"Fix bug"}', "customTitle") == "Fix bug"

    def test_whitespace_after_colon(self) -> None:
        assert first_quoted_value('{"customTitle" :   "Fix bug"}', "customTitle") == "Fix bug"

    def test_missing_key(self) -> None:
        assert first_quoted_value('{"sessionId": "abc"}', "customTitle") is None

    def test_non_string_value(self) -> None:
        """A null or numeric value is not a quoted value."""
        assert first_quoted_value('{"customTitle": null}', "customTitle") is None
        assert first_quoted_value('{"customTitle": 42}', "customTitle") is None

    def test_unterminated_string(self) -> None:
        assert first_quoted_value('{"text": "never closed', "text") is None

    def test_no_colon_after_key(self) -> None:
        assert first_quoted_value('["text"]', "text") is None

    def test_uses_first_occurrence(self) -> None:
        content = '{"requests": [{"text": "first"}, {"text": "second"}]}'
        assert first_quoted_value(content, "text") == "first"

    def test_escaped_quote_cuts_value(self) -> None:
        """Escapes are not interpreted; the value stops at the escaped quote."""
        content = '{"text": "say \\"hi\\""}'
        assert first_quoted_value(content, "text") == "say \\"

    def test_empty_string_value(self) -> None:
        assert first_quoted_value('{"customTitle": ""}', "customTitle") == ""

    def test_key_must_be_quoted(self) -> None:
        """A bare substring of another key does not count."""
        assert first_quoted_value('{"subtext": "nope"}', "text") is None


# ---------------------------------------------------------------------------
# extract_title_from_content
# ---------------------------------------------------------------------------


class TestExtractTitle:
    """Tests for the two-tier title heuristic."""

    def test_custom_title_wins(self, make_document) -> None:
        content = make_document(custom_title="Fix bug", texts=["hello there"])
        assert extract_title_from_content(content) == "Fix bug"

    def test_empty_custom_title_falls_back_to_text(self) -> None:
        content = '{"customTitle":"","requests":[{"message":{"text":"Refactor parser"}}]}'
        assert extract_title_from_content(content) == "Refactor parser"

    def test_literal_null_custom_title_falls_back(self, make_document) -> None:
        content = make_document(custom_title="null", texts=["hello"])
        assert extract_title_from_content(content) == "hello"

    def test_json_null_custom_title_falls_back(self) -> None:
        content = '{"customTitle": null, "requests": [{"message": {"text": "hello"}}]}'
        assert extract_title_from_content(content) == "hello"

    def test_text_just_under_limit_accepted(self, make_document) -> None:
        text = "x" * (MAX_FALLBACK_TITLE_LENGTH - 1)
        assert extract_title_from_content(make_document(texts=[text])) == text

    def test_text_at_limit_rejected(self, make_document) -> None:
        text = "x" * MAX_FALLBACK_TITLE_LENGTH
        assert extract_title_from_content(make_document(texts=[text])) is None

    def test_empty_text_rejected(self, make_document) -> None:
        assert extract_title_from_content(make_document(texts=[""])) is None

    def test_no_title_fields(self, make_document) -> None:
        assert extract_title_from_content(make_document()) is None

    def test_not_json_at_all(self) -> None:
        assert extract_title_from_content("garbage") is None


# ---------------------------------------------------------------------------
# count_messages
# ---------------------------------------------------------------------------


class TestCountMessages:
    """Tests for the marker-based message count."""

    def test_counts_requests(self, make_document) -> None:
        assert count_messages(make_document(texts=["a", "b", "c"])) == 3

    def test_compact_marker(self) -> None:
        assert count_messages('[{"message":{}},{"message":{}}]') == 2

    def test_no_requests(self, make_document) -> None:
        assert count_messages(make_document()) == 0

    def test_marker_in_raw_text_overcounts(self) -> None:
        """Every literal occurrence counts, wherever it appears."""
        assert count_messages('{"message": 1, "note": "x", "message": 2}') == 2


# ---------------------------------------------------------------------------
# truncate_string
# ---------------------------------------------------------------------------


class TestTruncateString:
    def test_short_string_unchanged(self) -> None:
        assert truncate_string("hello", 10) == "hello"

    def test_exact_length_unchanged(self) -> None:
        assert truncate_string("hello", 5) == "hello"

    def test_long_string_cut_with_ellipsis(self) -> None:
        result = truncate_string("abcdefghij", 8)
        assert result == "abcde..."
        assert len(result) == 8
