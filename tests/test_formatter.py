"""Tests for plain-text report formatting."""

from __future__ import annotations

from pathlib import Path

from chat_session_search.formatter import (
    format_search_report,
    format_session_details,
    format_table,
    format_workspace_details,
    format_workspace_table,
)
from chat_session_search.search import (
    MatchKind,
    SearchCriteria,
    SearchOutcome,
    SearchResult,
    SearchStatus,
)
from chat_session_search.session import RequestEntry, SessionRecord, SessionSummary
from chat_session_search.workspace import WorkspaceDescriptor


def _outcome(status: SearchStatus, criteria: SearchCriteria | None = None, **kwargs) -> SearchOutcome:
    return SearchOutcome(criteria=criteria or SearchCriteria(), status=status, **kwargs)


class TestFormatTable:
    def test_aligned_columns(self) -> None:
        table = format_table(["A", "Long header"], [["value", "x"]])
        assert table.splitlines() == [
            "A     | Long header",
            "------+------------",
            "value | x",
        ]


# ---------------------------------------------------------------------------
# Search reports
# ---------------------------------------------------------------------------


class TestFormatSearchReport:
    """Tests for format_search_report."""

    def test_no_storage(self) -> None:
        assert format_search_report(_outcome(SearchStatus.NO_STORAGE)) == "No workspaces found"

    def test_no_workspaces_with_filter(self) -> None:
        outcome = _outcome(SearchStatus.NO_WORKSPACES, SearchCriteria(workspace_filter="api"))
        assert format_search_report(outcome) == "No workspaces found matching 'api'"

    def test_no_workspaces_without_filter(self) -> None:
        report = format_search_report(_outcome(SearchStatus.NO_WORKSPACES))
        assert report == "No workspaces with chat sessions found"

    def test_no_candidates_distinct_from_no_matches(self) -> None:
        no_candidates = format_search_report(_outcome(SearchStatus.NO_CANDIDATES, workspaces=3))
        no_matches = format_search_report(
            _outcome(SearchStatus.NO_MATCHES, SearchCriteria(pattern="auth"))
        )
        assert no_candidates == "No chat session files found in 3 workspace(s)"
        assert no_matches == "No sessions found matching 'auth'"

    def test_no_matches_explains_date_skips(self) -> None:
        outcome = _outcome(SearchStatus.NO_MATCHES, SearchCriteria(pattern="x"), skipped_by_date=4)
        assert format_search_report(outcome).splitlines()[1] == (
            "  (4 sessions skipped due to date filter)"
        )

    def test_results_table(self) -> None:
        results = [
            SearchResult(
                title="A very long title that will certainly be truncated somewhere",
                workspace="api",
                modified="2025-03-14 09:26",
                message_count=12,
                match_kind=MatchKind.TITLE,
                path=Path("/s/a.json"),
            ),
            SearchResult(
                title="Other",
                workspace="web",
                modified="2025-03-13 08:00",
                message_count=1,
                match_kind=MatchKind.NONE,
                path=Path("/s/b.json"),
            ),
        ]
        outcome = _outcome(
            SearchStatus.OK,
            SearchCriteria(limit=2),
            results=results,
            matched=5,
            scanned=8,
            total_candidates=10,
            skipped_by_date=2,
            limit_reached=True,
        )

        lines = format_search_report(outcome).splitlines()

        assert lines[0].startswith("Title")
        assert "A very long title that will certainly..." in lines[2]
        assert lines[2].rstrip().endswith("title")
        assert lines[3].rstrip().endswith("1")
        assert "Found 2 session(s) (scanned 8 of 10 files, 2 skipped by date)" in lines
        assert lines[-1] == "  (results limited to 2; use --limit to show more)"


# ---------------------------------------------------------------------------
# Workspaces and sessions
# ---------------------------------------------------------------------------


def _workspace() -> WorkspaceDescriptor:
    return WorkspaceDescriptor(
        hash="0123456789abcdef",
        workspace_path=Path("/s/0123456789abcdef"),
        project_path="/home/me/api",
        has_sessions=True,
        session_count=1,
    )


def _summary() -> SessionSummary:
    record = SessionRecord(
        session_id="abc",
        custom_title="Fix login",
        requests=[RequestEntry("first question"), RequestEntry("second")],
    )
    return SessionSummary(
        workspace=_workspace(),
        path=Path("/s/0123456789abcdef/chatSessions/abc.json"),
        record=record,
        modified="2025-03-14 09:26",
    )


class TestWorkspaceFormatting:
    def test_workspace_table(self) -> None:
        no_path = WorkspaceDescriptor(hash="ffff", workspace_path=Path("/s/ffff"))
        output = format_workspace_table([_workspace(), no_path])
        assert "0123456789ab..." in output
        assert "(none)" in output
        assert output.endswith("Total workspaces: 2")

    def test_workspace_details(self) -> None:
        output = format_workspace_details(_workspace(), [_summary()])
        assert "Hash: 0123456789abcdef" in output
        assert "Session Count: 1" in output
        assert "  1. Fix login (2 messages)" in output

    def test_session_details(self) -> None:
        output = format_session_details(_summary())
        lines = output.splitlines()
        assert "Title: Fix login" in lines
        assert "Session ID: abc" in lines
        assert lines[-2:] == ["  1. first question", "  2. second"]
