"""Full parsing of chat session documents.

The search pipeline never parses documents (see scanner.py). The listing
and detail commands do, through SessionRecord, which reads only the fields
they display.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .errors import FileUnreadable
from .indexer import SessionFile, list_session_files
from .search import DEFAULT_TITLE, format_timestamp
from .workspace import SESSION_EXTENSION, WorkspaceDescriptor, normalize_path

logger = logging.getLogger(__name__)

TITLE_LENGTH = 50
PREVIEW_COUNT = 3
PREVIEW_WIDTH = 100


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class RequestEntry:
    """One user request within a session."""

    text: str | None = None

    @classmethod
    def from_dict(cls, data: object) -> RequestEntry:
        """Deserialize from a ``requests`` array item."""
        if not isinstance(data, dict):
            return cls()
        message = data.get("message")
        if not isinstance(message, dict):
            return cls()
        text = message.get("text")
        return cls(text=text if isinstance(text, str) else None)


@dataclass
class SessionRecord:
    """The parts of a session document shown to users."""

    session_id: str | None = None
    custom_title: str | None = None
    requests: list[RequestEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> SessionRecord:
        """Deserialize from a parsed session document."""
        session_id = data.get("sessionId")
        custom_title = data.get("customTitle")
        requests = data.get("requests")
        return cls(
            session_id=session_id if isinstance(session_id, str) else None,
            custom_title=custom_title if isinstance(custom_title, str) else None,
            requests=[RequestEntry.from_dict(r) for r in requests] if isinstance(requests, list) else [],
        )

    @classmethod
    def load(cls, path: Path) -> SessionRecord:
        """Parse a session file.

        Raises:
            FileUnreadable: If the file cannot be read or is not a JSON object.
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise FileUnreadable(path, str(e)) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FileUnreadable(path, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise FileUnreadable(path, "not a JSON object")
        return cls.from_dict(data)

    def title(self) -> str:
        """Display title: custom title, else the first request's first line."""
        if self.custom_title:
            return self.custom_title
        for request in self.requests:
            if request.text and request.text.strip():
                first_line = request.text.strip().splitlines()[0]
                if len(first_line) > TITLE_LENGTH:
                    return first_line[:TITLE_LENGTH] + "..."
                return first_line
        return DEFAULT_TITLE

    def request_count(self) -> int:
        return len(self.requests)

    def preview(self, count: int = PREVIEW_COUNT, width: int = PREVIEW_WIDTH) -> list[str]:
        """Return the text of the first requests, each cut to width characters."""
        lines: list[str] = []
        for request in self.requests[:count]:
            if request.text is None:
                continue
            if len(request.text) > width:
                lines.append(request.text[:width] + "...")
            else:
                lines.append(request.text)
        return lines


@dataclass
class SessionSummary:
    """A parsed session together with where it lives."""

    workspace: WorkspaceDescriptor
    path: Path
    record: SessionRecord
    modified: str

    @property
    def file_name(self) -> str:
        return self.path.name


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def _modified(path: Path) -> str:
    try:
        return format_timestamp(SessionFile(path=path, workspace="").modified_at())
    except OSError:
        return "unknown"


def load_workspace_sessions(
    workspace: WorkspaceDescriptor,
    extension: str = SESSION_EXTENSION,
) -> list[SessionSummary]:
    """Parse every session of a workspace, skipping unreadable files."""
    if not workspace.has_sessions:
        return []

    summaries: list[SessionSummary] = []
    for path in list_session_files(workspace.sessions_dir, extension):
        try:
            record = SessionRecord.load(path)
        except FileUnreadable as e:
            logger.debug(f"Skipping session: {e}")
            continue
        summaries.append(
            SessionSummary(workspace=workspace, path=path, record=record, modified=_modified(path))
        )
    return summaries


def filter_by_project_path(
    workspaces: list[WorkspaceDescriptor],
    project_path: str | None,
) -> list[WorkspaceDescriptor]:
    """Keep workspaces whose project path equals project_path after normalization."""
    if project_path is None:
        return list(workspaces)
    wanted = normalize_path(project_path)
    return [
        ws
        for ws in workspaces
        if ws.project_path is not None and normalize_path(ws.project_path) == wanted
    ]


def list_sessions(
    workspaces: list[WorkspaceDescriptor],
    project_path: str | None = None,
    extension: str = SESSION_EXTENSION,
) -> list[SessionSummary]:
    """Parse the sessions of all (or one project's) workspaces."""
    summaries: list[SessionSummary] = []
    for workspace in filter_by_project_path(workspaces, project_path):
        summaries.extend(load_workspace_sessions(workspace, extension))
    return summaries


def find_session(
    workspaces: list[WorkspaceDescriptor],
    session_id: str,
    project_path: str | None = None,
    extension: str = SESSION_EXTENSION,
) -> SessionSummary | None:
    """Find the first session whose id or file name contains session_id.

    Matching is case-insensitive. Returns None if nothing matches.
    """
    needle = session_id.lower()
    for workspace in filter_by_project_path(workspaces, project_path):
        for summary in load_workspace_sessions(workspace, extension):
            record_id = (summary.record.session_id or "").lower()
            if needle in record_id or needle in summary.file_name.lower():
                return summary
    return None
