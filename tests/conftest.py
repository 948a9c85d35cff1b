"""Shared test fixtures for chat-session-search."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from chat_session_search.config import SearchConfig


# ---------------------------------------------------------------------------
# Session documents
# ---------------------------------------------------------------------------


def session_document(
    session_id: str = "sess-001",
    custom_title: str | None = None,
    texts: list[str] | None = None,
) -> str:
    """Build a session document the way VS Code writes it."""
    data: dict = {"version": 3, "sessionId": session_id}
    if custom_title is not None:
        data["customTitle"] = custom_title
    data["requests"] = [{"message": {"text": text}} for text in (texts or [])]
    return json.dumps(data)


@pytest.fixture
def make_document() -> Callable[..., str]:
    """Return the session document builder."""
    return session_document


# ---------------------------------------------------------------------------
# Fake workspace storage
# ---------------------------------------------------------------------------


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Empty workspace storage directory."""
    root = tmp_path / "workspaceStorage"
    root.mkdir()
    return root


@pytest.fixture
def make_workspace(storage_root: Path) -> Callable[..., Path]:
    """Return a factory creating one workspace directory under storage_root.

    Args (of the factory):
        workspace_hash: Directory name.
        folder: Raw ``folder`` URI for workspace.json (None = no descriptor).
        sessions: Mapping of session file name to content. None means no
            chatSessions directory at all.
    """

    def _make(
        workspace_hash: str,
        folder: str | None = None,
        sessions: dict[str, str] | None = None,
    ) -> Path:
        workspace_dir = storage_root / workspace_hash
        workspace_dir.mkdir()
        if folder is not None:
            (workspace_dir / "workspace.json").write_text(
                json.dumps({"folder": folder}), encoding="utf-8"
            )
        if sessions is not None:
            sessions_dir = workspace_dir / "chatSessions"
            sessions_dir.mkdir()
            for name, content in sessions.items():
                (sessions_dir / name).write_text(content, encoding="utf-8")
        return workspace_dir

    return _make


@pytest.fixture
def set_mtime() -> Callable[[Path, datetime], None]:
    """Return a helper setting a file's modification time."""

    def _set(path: Path, when: datetime) -> None:
        ts = when.timestamp()
        os.utime(path, (ts, ts))

    return _set


@pytest.fixture
def search_config(storage_root: Path) -> SearchConfig:
    """SearchConfig pointing at the fake storage root."""
    return SearchConfig(storage_root=storage_root, max_workers=4)
