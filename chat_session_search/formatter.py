"""Plain-text formatting for search results and workspace listings."""

from __future__ import annotations

from .scanner import truncate_string
from .search import MatchKind, SearchOutcome, SearchStatus
from .session import SessionSummary
from .workspace import WorkspaceDescriptor

TITLE_WIDTH = 40
WORKSPACE_WIDTH = 20
HASH_WIDTH = 12
NO_PATH = "(none)"
NO_WORKSPACES = "No workspaces found"


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Render rows as a left-aligned text table with a header rule."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def _line(cells: list[str]) -> str:
        return " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

    lines = [_line(headers), "-+-".join("-" * w for w in widths)]
    lines.extend(_line(row) for row in rows)
    return "\n".join(lines)


def _short_hash(workspace_hash: str) -> str:
    return f"{workspace_hash[:HASH_WIDTH]}..."


def _match_label(kind: MatchKind) -> str:
    return "" if kind is MatchKind.NONE else kind.value


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def format_search_report(outcome: SearchOutcome) -> str:
    """Render a search outcome, including the reason for an empty result."""
    criteria = outcome.criteria

    if outcome.status is SearchStatus.NO_STORAGE:
        return NO_WORKSPACES
    if outcome.status is SearchStatus.NO_WORKSPACES:
        if criteria.workspace_filter:
            return f"No workspaces found matching '{criteria.workspace_filter}'"
        return "No workspaces with chat sessions found"
    if outcome.status is SearchStatus.NO_CANDIDATES:
        return f"No chat session files found in {outcome.workspaces} workspace(s)"
    if outcome.status is SearchStatus.NO_MATCHES:
        lines = [f"No sessions found matching '{criteria.pattern}'"]
        if outcome.skipped_by_date > 0:
            lines.append(f"  ({outcome.skipped_by_date} sessions skipped due to date filter)")
        return "\n".join(lines)

    rows = [
        [
            truncate_string(r.title, TITLE_WIDTH),
            truncate_string(r.workspace, WORKSPACE_WIDTH),
            r.modified,
            str(r.message_count),
            _match_label(r.match_kind),
        ]
        for r in outcome.results
    ]
    skipped = f", {outcome.skipped_by_date} skipped by date" if outcome.skipped_by_date else ""
    lines = [
        format_table(["Title", "Workspace", "Modified", "Msgs", "Match"], rows),
        "",
        f"Found {len(outcome.results)} session(s) "
        f"(scanned {outcome.scanned} of {outcome.total_candidates} files{skipped})",
    ]
    if outcome.limit_reached:
        lines.append(f"  (results limited to {criteria.limit}; use --limit to show more)")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Workspaces and sessions
# ---------------------------------------------------------------------------


def format_workspace_table(workspaces: list[WorkspaceDescriptor]) -> str:
    """Render workspaces as a table with a total line."""
    rows = [
        [
            _short_hash(ws.hash),
            ws.project_path or NO_PATH,
            str(ws.session_count or 0),
            "Yes" if ws.has_sessions else "No",
        ]
        for ws in workspaces
    ]
    table = format_table(["Hash", "Project Path", "Sessions", "Has Chats"], rows)
    return f"{table}\n\nTotal workspaces: {len(workspaces)}"


def format_session_table(summaries: list[SessionSummary]) -> str:
    """Render parsed sessions as a table with a total line."""
    rows = [
        [
            s.workspace.project_path or NO_PATH,
            s.file_name,
            s.modified,
            str(s.record.request_count()),
        ]
        for s in summaries
    ]
    table = format_table(["Project Path", "Session File", "Last Modified", "Messages"], rows)
    return f"{table}\n\nTotal sessions: {len(summaries)}"


def _heading(text: str) -> list[str]:
    return ["=" * 60, text, "=" * 60]


def format_workspace_details(
    workspace: WorkspaceDescriptor,
    sessions: list[SessionSummary],
) -> str:
    """Render one workspace and the titles of its sessions."""
    lines = _heading("Workspace Details")
    lines += [
        f"Hash: {workspace.hash}",
        f"Path: {workspace.project_path or NO_PATH}",
        f"Has Sessions: {'Yes' if workspace.has_sessions else 'No'}",
        f"Workspace Path: {workspace.workspace_path}",
    ]
    if workspace.has_sessions:
        lines.append(f"Session Count: {len(sessions)}")
        if sessions:
            lines += ["", "Sessions:"]
            for i, s in enumerate(sessions, start=1):
                lines.append(f"  {i}. {s.record.title()} ({s.record.request_count()} messages)")
    return "\n".join(lines)


def format_session_details(summary: SessionSummary) -> str:
    """Render one session with a preview of its first requests."""
    record = summary.record
    lines = _heading("Session Details")
    lines += [
        f"Title: {record.title()}",
        f"File: {summary.file_name}",
        f"Session ID: {record.session_id or NO_PATH}",
        f"Messages: {record.request_count()}",
        f"Workspace: {summary.workspace.project_path or NO_PATH}",
        "",
        "Preview:",
    ]
    for i, text in enumerate(record.preview(), start=1):
        lines.append(f"  {i}. {text}")
    return "\n".join(lines)
