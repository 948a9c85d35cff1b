"""Flatten candidate workspaces into a list of session files.

This module provides:
- SessionFile: one session file paired with its workspace label
- CandidateIndex: the flat candidate list and its size
- build_candidate_index: lists the sessions directory of each workspace
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .workspace import SESSION_EXTENSION, WorkspaceDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionFile:
    """A session file eligible for content-level evaluation."""

    path: Path
    workspace: str

    @property
    def session_id(self) -> str:
        """Session id as encoded in the file name."""
        return self.path.stem

    def modified_at(self) -> datetime:
        """Return the file modification time in UTC.

        Reads filesystem metadata only, never the content.

        Raises:
            OSError: If the file cannot be stat'ed, or its modification time
                is outside the range datetime can represent.
        """
        mtime = self.path.stat().st_mtime
        try:
            return datetime.fromtimestamp(mtime, tz=timezone.utc)
        except (ValueError, OverflowError) as e:
            raise OSError(f"Unrepresentable modification time {mtime} for {self.path}") from e


@dataclass
class CandidateIndex:
    """Flat list of session file candidates."""

    files: list[SessionFile] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[SessionFile]:
        return iter(self.files)


def list_session_files(sessions_dir: Path, extension: str = SESSION_EXTENSION) -> list[Path]:
    """List session files in a sessions directory, sorted by name.

    Returns an empty list if the directory cannot be listed.
    """
    try:
        return sorted(
            entry for entry in sessions_dir.iterdir() if entry.suffix == extension and entry.is_file()
        )
    except OSError as e:
        logger.warning(f"Cannot list {sessions_dir}: {e}")
        return []


def build_candidate_index(
    workspaces: list[WorkspaceDescriptor],
    extension: str = SESSION_EXTENSION,
) -> CandidateIndex:
    """Collect every session file of the given workspaces.

    Args:
        workspaces: Workspaces that passed workspace-level filtering.
        extension: Session file extension, including the dot.

    Returns:
        CandidateIndex with one SessionFile per session file.
    """
    index = CandidateIndex()
    for workspace in workspaces:
        label = workspace.label
        for path in list_session_files(workspace.sessions_dir, extension):
            index.files.append(SessionFile(path=path, workspace=label))

    logger.debug(f"Indexed {index.total} session files from {len(workspaces)} workspaces")
    return index
