"""Workspace discovery for VS Code chat session storage.

This module provides:
- Storage root resolution: platform default or an explicit override
- Path helpers: decode_workspace_folder and normalize_path
- WorkspaceFilter: cheap hash / project-path substring filter
- Workspace enumeration: the filtered candidate workspaces used by search,
  and full discovery (with session counts) used by the listing commands

Layout consumed::

    <storage root>/
        <hash>/
            workspace.json      {"folder": "file:///home/me/project"}
            chatSessions/       optional
                <session-id>.json
"""

from __future__ import annotations

import json
import logging
import os
import platform
import posixpath
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import unquote

from .errors import DescriptorUnreadable, StorageRootMissing

logger = logging.getLogger(__name__)

SESSIONS_DIR_NAME = "chatSessions"
DESCRIPTOR_NAME = "workspace.json"
SESSION_EXTENSION = ".json"

HASH_LABEL_LENGTH = 8

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://[^/]*")
_DRIVE_URI_RE = re.compile(r"^/[A-Za-z]:")
_DRIVE_PATH_RE = re.compile(r"^[A-Za-z]:")


# ---------------------------------------------------------------------------
# Storage root
# ---------------------------------------------------------------------------


def get_default_storage_root(
    system: str | None = None,
    environ: dict[str, str] | None = None,
    home: Path | None = None,
) -> Path:
    """Return the platform's default VS Code workspace storage directory.

    Args:
        system: Platform name as returned by platform.system(). Detected if None.
        environ: Environment mapping (for APPDATA). Defaults to os.environ.
        home: Home directory. Defaults to Path.home().

    Returns:
        The default storage root (which may not exist).
    """
    system = system or platform.system()
    environ = os.environ if environ is None else environ
    home = home or Path.home()

    if system == "Windows":
        appdata = environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / "Code" / "User" / "workspaceStorage"
    if system == "Darwin":
        return home / "Library" / "Application Support" / "Code" / "User" / "workspaceStorage"
    return home / ".config" / "Code" / "User" / "workspaceStorage"


def locate_storage_root(override: Path | str | None = None) -> Path:
    """Resolve the workspace storage root.

    Args:
        override: Explicit storage root. The platform default is used if None.

    Returns:
        The storage root directory.

    Raises:
        StorageRootMissing: If the directory does not exist.
    """
    root = Path(override).expanduser() if override else get_default_storage_root()
    if not root.is_dir():
        raise StorageRootMissing(root)
    return root


def iter_workspace_dirs(root: Path) -> list[Path]:
    """List the immediate subdirectories of the storage root, sorted by name.

    An OSError while listing the root propagates: without the root listing
    there is nothing to search.
    """
    return sorted(entry for entry in root.iterdir() if entry.is_dir())


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def decode_workspace_folder(raw: str) -> str:
    """Decode a workspace folder URI to a plain path.

    Strips the ``file://`` scheme (or any ``scheme://authority`` prefix, as
    used by remote workspaces), percent-decodes the rest and drops the
    leading slash of a Windows drive path.

    Examples:
        file:///home/me/project → /home/me/project
        file:///c%3A/Users/me/my%20app → c:/Users/me/my app
        vscode-remote://ssh-remote%2Bbox/srv/app → /srv/app
    """
    value = raw.strip()
    if value.startswith("file://"):
        value = value[len("file://") :]
    else:
        match = _SCHEME_RE.match(value)
        if match:
            value = value[match.end() :]

    value = unquote(value)

    if _DRIVE_URI_RE.match(value):
        value = value[1:]
    return value


def normalize_path(path: str) -> str:
    """Normalize a path for equality comparisons.

    Backslashes become slashes, redundant separators and ``.``/``..``
    segments are collapsed, the trailing separator is removed, and Windows
    drive paths are lower-cased. Idempotent.
    """
    if not path:
        return ""
    value = posixpath.normpath(path.replace("\\", "/"))
    if _DRIVE_PATH_RE.match(value):
        value = value.lower()
    return value


def get_display_name(project_path: str) -> str:
    """Return the last segment of a decoded project path."""
    return PurePosixPath(project_path.replace("\\", "/")).name


# ---------------------------------------------------------------------------
# Workspace descriptor
# ---------------------------------------------------------------------------


@dataclass
class WorkspaceDescriptor:
    """One workspace storage directory."""

    hash: str
    workspace_path: Path
    project_path: str | None = None
    has_sessions: bool = False
    # None when the sessions directory was not listed (search path)
    session_count: int | None = None
    sessions_dir_name: str = SESSIONS_DIR_NAME

    @property
    def sessions_dir(self) -> Path:
        return self.workspace_path / self.sessions_dir_name

    @property
    def label(self) -> str:
        """Short display label: project folder name, else the hash prefix."""
        if self.project_path:
            name = get_display_name(self.project_path)
            if name:
                return name
        return self.hash[:HASH_LABEL_LENGTH]


def read_workspace_folder(workspace_dir: Path, descriptor_name: str = DESCRIPTOR_NAME) -> str:
    """Read the raw ``folder`` reference from a workspace descriptor.

    Raises:
        DescriptorUnreadable: If the file is missing, is not a JSON object,
            or has no string ``folder`` entry.
    """
    descriptor = workspace_dir / descriptor_name
    try:
        with open(descriptor, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise DescriptorUnreadable(descriptor, str(e)) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DescriptorUnreadable(descriptor, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DescriptorUnreadable(descriptor, "not a JSON object")

    folder = data.get("folder")
    if not isinstance(folder, str) or not folder:
        raise DescriptorUnreadable(descriptor, "no folder entry")
    return folder


def load_project_path(workspace_dir: Path, descriptor_name: str = DESCRIPTOR_NAME) -> str | None:
    """Decode the project path of a workspace, or None if unavailable."""
    try:
        raw = read_workspace_folder(workspace_dir, descriptor_name)
    except DescriptorUnreadable as e:
        logger.debug(f"{e}; keeping workspace without a project path")
        return None
    return decode_workspace_folder(raw)


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


@dataclass
class WorkspaceFilter:
    """Case-insensitive substring filter on workspace hash or project path."""

    substring: str | None = None

    def __post_init__(self) -> None:
        self._needle = self.substring.lower() if self.substring else None

    @property
    def active(self) -> bool:
        return self._needle is not None

    def matches(self, workspace_hash: str, project_path: str | None) -> bool:
        if self._needle is None:
            return True
        if self._needle in workspace_hash.lower():
            return True
        return project_path is not None and self._needle in project_path.lower()


def locate_candidate_workspaces(
    root: Path,
    workspace_filter: WorkspaceFilter | None = None,
    sessions_dir_name: str = SESSIONS_DIR_NAME,
    descriptor_name: str = DESCRIPTOR_NAME,
) -> list[WorkspaceDescriptor]:
    """Return the workspaces that can contribute session candidates.

    Filters are applied cheapest first: a workspace without a sessions
    directory is dropped by an existence check alone; only survivors have
    their descriptor decoded and are matched against the filter.

    Args:
        root: Storage root.
        workspace_filter: Optional hash / project-path substring filter.
        sessions_dir_name: Name of the per-workspace sessions directory.
        descriptor_name: Name of the per-workspace descriptor file.

    Returns:
        Matching workspaces, in directory-name order.
    """
    workspace_filter = workspace_filter or WorkspaceFilter()
    survivors: list[WorkspaceDescriptor] = []
    without_sessions = 0

    for workspace_dir in iter_workspace_dirs(root):
        if not (workspace_dir / sessions_dir_name).is_dir():
            without_sessions += 1
            continue

        project_path = load_project_path(workspace_dir, descriptor_name)
        if not workspace_filter.matches(workspace_dir.name, project_path):
            continue

        survivors.append(
            WorkspaceDescriptor(
                hash=workspace_dir.name,
                workspace_path=workspace_dir,
                project_path=project_path,
                has_sessions=True,
                sessions_dir_name=sessions_dir_name,
            )
        )

    logger.debug(
        f"{len(survivors)} candidate workspaces under {root} "
        f"({without_sessions} without {sessions_dir_name})"
    )
    return survivors


# ---------------------------------------------------------------------------
# Full discovery
# ---------------------------------------------------------------------------


def count_session_files(sessions_dir: Path, extension: str = SESSION_EXTENSION) -> int:
    """Count session files in a sessions directory (0 if unreadable)."""
    try:
        return sum(
            1 for entry in sessions_dir.iterdir() if entry.is_file() and entry.suffix == extension
        )
    except OSError as e:
        logger.warning(f"Cannot list {sessions_dir}: {e}")
        return 0


def discover_workspaces(
    root: Path,
    sessions_dir_name: str = SESSIONS_DIR_NAME,
    descriptor_name: str = DESCRIPTOR_NAME,
    extension: str = SESSION_EXTENSION,
) -> list[WorkspaceDescriptor]:
    """Describe every workspace under the storage root.

    Unlike locate_candidate_workspaces, this keeps workspaces without a
    sessions directory and counts the session files of the others.
    """
    workspaces: list[WorkspaceDescriptor] = []
    for workspace_dir in iter_workspace_dirs(root):
        sessions_dir = workspace_dir / sessions_dir_name
        has_sessions = sessions_dir.is_dir()
        workspaces.append(
            WorkspaceDescriptor(
                hash=workspace_dir.name,
                workspace_path=workspace_dir,
                project_path=load_project_path(workspace_dir, descriptor_name),
                has_sessions=has_sessions,
                session_count=count_session_files(sessions_dir, extension) if has_sessions else 0,
                sessions_dir_name=sessions_dir_name,
            )
        )
    return workspaces


def find_workspaces(
    workspaces: list[WorkspaceDescriptor],
    pattern: str,
    cwd: Path | None = None,
) -> list[WorkspaceDescriptor]:
    """Select workspaces whose hash or project path contains the pattern.

    The pattern ``.`` stands for the name of the current working directory.
    """
    if pattern == ".":
        pattern = (cwd or Path.cwd()).name or pattern
    workspace_filter = WorkspaceFilter(pattern)
    return [ws for ws in workspaces if workspace_filter.matches(ws.hash, ws.project_path)]
