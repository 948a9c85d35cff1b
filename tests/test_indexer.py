"""Tests for the candidate index."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from chat_session_search.indexer import (
    CandidateIndex,
    SessionFile,
    build_candidate_index,
    list_session_files,
)
from chat_session_search.workspace import locate_candidate_workspaces


class TestSessionFile:
    def test_session_id_from_file_name(self) -> None:
        sf = SessionFile(path=Path("/s/chatSessions/4f2a-b1.json"), workspace="app")
        assert sf.session_id == "4f2a-b1"

    def test_modified_at_is_utc(self, tmp_path: Path, set_mtime) -> None:
        path = tmp_path / "a.json"
        path.write_text("{}")
        when = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)
        set_mtime(path, when)

        modified = SessionFile(path=path, workspace="x").modified_at()

        assert modified == when
        assert modified.tzinfo == timezone.utc

    def test_modified_at_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            SessionFile(path=tmp_path / "gone.json", workspace="x").modified_at()

    def test_modified_at_out_of_range_is_os_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A modification time past year 9999 surfaces as OSError."""
        path = tmp_path / "far-future.json"
        path.write_text("{}")
        monkeypatch.setattr(Path, "stat", lambda self, *a, **kw: SimpleNamespace(st_mtime=4e11))

        with pytest.raises(OSError, match="Unrepresentable modification time"):
            SessionFile(path=path, workspace="x").modified_at()


class TestListSessionFiles:
    def test_sorted_and_filtered_by_extension(self, tmp_path: Path) -> None:
        for name in ("b.json", "a.json", "notes.md"):
            (tmp_path / name).write_text("{}")
        (tmp_path / "dir.json").mkdir()

        assert [p.name for p in list_session_files(tmp_path)] == ["a.json", "b.json"]

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        assert list_session_files(tmp_path / "missing") == []


class TestBuildCandidateIndex:
    """Tests for build_candidate_index."""

    def test_one_candidate_from_workspace_with_sessions(self, storage_root, make_workspace) -> None:
        """Only the workspace with a sessions directory contributes."""
        make_workspace(
            "w1",
            folder="file:///home/me/one",
            sessions={"s1.json": '{"customTitle":"Fix bug","requests":[]}'},
        )
        make_workspace("w2", folder="file:///home/me/two")

        index = build_candidate_index(locate_candidate_workspaces(storage_root))

        assert index.total == 1
        assert len(index) == 1
        (candidate,) = list(index)
        assert candidate.session_id == "s1"
        assert candidate.workspace == "one"

    def test_flattens_in_workspace_order(self, storage_root, make_workspace) -> None:
        make_workspace("a", sessions={"2.json": "{}", "1.json": "{}"})
        make_workspace("b", sessions={"3.json": "{}"})

        index = build_candidate_index(locate_candidate_workspaces(storage_root))

        assert [f.session_id for f in index] == ["1", "2", "3"]

    def test_empty(self) -> None:
        index = build_candidate_index([])
        assert index.total == 0
        assert index.files == []

    def test_default_index_is_empty(self) -> None:
        assert CandidateIndex().total == 0
