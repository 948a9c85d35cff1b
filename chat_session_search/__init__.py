"""chat-session-search: find VS Code chat sessions across workspaces."""

from chat_session_search.config import ConfigManager, SearchConfig, apply_env_overrides, load_config
from chat_session_search.errors import (
    ChatSessionSearchError,
    DateBoundUnparseable,
    DescriptorUnreadable,
    FileUnreadable,
    StorageRootMissing,
)
from chat_session_search.indexer import CandidateIndex, SessionFile, build_candidate_index
from chat_session_search.scanner import (
    count_messages,
    extract_title_from_content,
    first_quoted_value,
)
from chat_session_search.search import (
    MatchKind,
    ParallelScanPipeline,
    SearchCriteria,
    SearchOutcome,
    SearchResult,
    SearchStatus,
    rank_results,
    search_sessions,
)
from chat_session_search.session import RequestEntry, SessionRecord, find_session, list_sessions
from chat_session_search.workspace import (
    WorkspaceDescriptor,
    WorkspaceFilter,
    decode_workspace_folder,
    discover_workspaces,
    find_workspaces,
    locate_candidate_workspaces,
    locate_storage_root,
    normalize_path,
)

__version__ = "0.1.0"

__all__ = [
    # Config module
    "ConfigManager",
    "SearchConfig",
    "apply_env_overrides",
    "load_config",
    # Errors module
    "ChatSessionSearchError",
    "DateBoundUnparseable",
    "DescriptorUnreadable",
    "FileUnreadable",
    "StorageRootMissing",
    # Workspace module
    "WorkspaceDescriptor",
    "WorkspaceFilter",
    "decode_workspace_folder",
    "discover_workspaces",
    "find_workspaces",
    "locate_candidate_workspaces",
    "locate_storage_root",
    "normalize_path",
    # Indexer module
    "CandidateIndex",
    "SessionFile",
    "build_candidate_index",
    # Scanner module
    "count_messages",
    "extract_title_from_content",
    "first_quoted_value",
    # Search module
    "MatchKind",
    "ParallelScanPipeline",
    "SearchCriteria",
    "SearchOutcome",
    "SearchResult",
    "SearchStatus",
    "rank_results",
    "search_sessions",
    # Session module
    "RequestEntry",
    "SessionRecord",
    "find_session",
    "list_sessions",
]
