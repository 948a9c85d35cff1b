"""Exceptions for chat-session-search.

Exception Hierarchy:
    ChatSessionSearchError (base)
    ├── StorageRootMissing (no workspace storage directory; fatal to a search)
    ├── DescriptorUnreadable (one workspace.json; absorbed by discovery)
    ├── FileUnreadable (one session file; absorbed by the scan)
    └── DateBoundUnparseable (bad --after/--before; rejected before scanning)
"""

from __future__ import annotations

from pathlib import Path


class ChatSessionSearchError(Exception):
    """Base exception for all chat-session-search errors."""


class StorageRootMissing(ChatSessionSearchError):
    """Raised when the workspace storage root does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Workspace storage not found: {path}")


class DescriptorUnreadable(ChatSessionSearchError):
    """Raised when a workspace descriptor cannot be read or decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read workspace descriptor {path}: {reason}")


class FileUnreadable(ChatSessionSearchError):
    """Raised when a session file cannot be read as text."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read session file {path}: {reason}")


class DateBoundUnparseable(ChatSessionSearchError, ValueError):
    """Raised when a date bound is not a valid YYYY-MM-DD date."""

    def __init__(self, value: str, reason: str = "expected YYYY-MM-DD") -> None:
        self.value = value
        super().__init__(f"Invalid date '{value}': {reason}")
