"""Filtered parallel search over chat session files.

This module provides:
- SearchCriteria: what to look for, validated before any file is touched
- ParallelScanPipeline: per-candidate date filter → read → title → match
- rank_results: newest-first ordering and truncation
- search_sessions: the whole flow from storage root to ranked results

Filters run in increasing cost order. Workspace-level filters (sessions
directory existence, hash / project-path substring) run during discovery;
the date filter needs only file metadata; the content read, which dominates
the cost of a search, happens last.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path

from .config import DEFAULT_LIMIT, DEFAULT_MAX_WORKERS, SearchConfig
from .errors import DateBoundUnparseable, FileUnreadable, StorageRootMissing
from .indexer import SessionFile, build_candidate_index
from .scanner import count_messages, extract_title_from_content
from .workspace import WorkspaceFilter, locate_candidate_workspaces, locate_storage_root

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"

# Fixed width and zero padded: comparing two formatted timestamps as strings
# gives the same order as comparing the instants (to the minute). The ranker
# depends on this. %Y is not zero padded below year 1000 on every platform,
# so format_timestamp pads the year itself.
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

DEFAULT_TITLE = "Untitled"


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


class MatchKind(Enum):
    """Which criterion made a session match."""

    NONE = "none"  # empty pattern: list-all mode
    ID = "id"
    TITLE = "title"
    CONTENT = "content"


class SearchStatus(Enum):
    """Overall outcome of a search call."""

    OK = "ok"
    NO_STORAGE = "no_storage"
    NO_WORKSPACES = "no_workspaces"
    NO_CANDIDATES = "no_candidates"
    NO_MATCHES = "no_matches"


@dataclass
class SearchCriteria:
    """Search parameters.

    An empty pattern lists every session that survives the other filters.
    """

    pattern: str = ""
    workspace_filter: str | None = None
    title_only: bool = False
    search_content: bool = False
    after: date | None = None
    before: date | None = None
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_strings(
        cls,
        pattern: str = "",
        workspace_filter: str | None = None,
        title_only: bool = False,
        search_content: bool = False,
        after: str | None = None,
        before: str | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> SearchCriteria:
        """Build criteria from raw option strings.

        Raises:
            DateBoundUnparseable: If after/before is not YYYY-MM-DD or the
                range is empty.
            ValueError: If limit is less than 1.
        """
        criteria = cls(
            pattern=pattern,
            workspace_filter=workspace_filter or None,
            title_only=title_only,
            search_content=search_content,
            after=parse_date_bound(after),
            before=parse_date_bound(before),
            limit=limit,
        )
        criteria.validate()
        return criteria

    @property
    def has_date_bounds(self) -> bool:
        return self.after is not None or self.before is not None

    def validate(self) -> None:
        """Reject criteria that cannot be searched.

        Raises:
            DateBoundUnparseable: If after is later than before.
            ValueError: If limit is less than 1.
        """
        if self.limit < 1:
            raise ValueError(f"limit must be at least 1, got {self.limit}")
        if self.after is not None and self.before is not None and self.after > self.before:
            raise DateBoundUnparseable(
                self.after.strftime(DATE_FORMAT),
                f"after is later than before ({self.before.strftime(DATE_FORMAT)})",
            )


@dataclass
class SearchResult:
    """One matching session."""

    title: str
    workspace: str
    modified: str  # TIMESTAMP_FORMAT, UTC
    message_count: int  # approximate, see scanner.count_messages
    match_kind: MatchKind
    path: Path


@dataclass
class ScanReport:
    """Unordered output of one pipeline run."""

    results: list[SearchResult] = field(default_factory=list)
    total: int = 0
    scanned: int = 0
    skipped_by_date: int = 0


@dataclass
class RankedResults:
    """Results ordered newest first and cut to the limit."""

    results: list[SearchResult]
    matched: int
    limit: int

    @property
    def limit_reached(self) -> bool:
        """True when more matches may exist than were returned."""
        return len(self.results) == self.limit


@dataclass
class SearchOutcome:
    """Everything a caller needs to report a search."""

    criteria: SearchCriteria
    status: SearchStatus
    results: list[SearchResult] = field(default_factory=list)
    matched: int = 0
    scanned: int = 0
    total_candidates: int = 0
    skipped_by_date: int = 0
    limit_reached: bool = False
    workspaces: int = 0
    storage_root: Path | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Date handling
# ---------------------------------------------------------------------------


def parse_date_bound(value: str | None) -> date | None:
    """Parse a YYYY-MM-DD date bound.

    Args:
        value: Date string, or None / empty for "no bound".

    Returns:
        The date, or None if no bound was given.

    Raises:
        DateBoundUnparseable: If the value is not a valid date.
    """
    if value is None or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError as e:
        raise DateBoundUnparseable(value) from e


def in_date_range(day: date, after: date | None, before: date | None) -> bool:
    """Check day against an inclusive [after, before] range."""
    if after is not None and day < after:
        return False
    if before is not None and day > before:
        return False
    return True


def format_timestamp(dt: datetime) -> str:
    """Format a UTC datetime for display and ranking (TIMESTAMP_FORMAT)."""
    return f"{dt.year:04d}{dt.strftime(TIMESTAMP_FORMAT[2:])}"


# ---------------------------------------------------------------------------
# Per-candidate stages
# ---------------------------------------------------------------------------


class ScanCounters:
    """Counters shared by the workers of one pipeline run.

    Thread-safe. Each run creates its own instance.
    """

    def __init__(self) -> None:
        self.scanned = 0
        self.skipped_by_date = 0
        self._lock = threading.Lock()

    def record_scanned(self) -> None:
        with self._lock:
            self.scanned += 1

    def record_skipped_by_date(self) -> None:
        with self._lock:
            self.skipped_by_date += 1


def read_session_content(path: Path) -> str:
    """Read a session file as UTF-8 text.

    Raises:
        FileUnreadable: If the file cannot be read or decoded.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileUnreadable(path, str(e)) from e


def classify_match(
    session_id: str,
    title_lower: str,
    content: str,
    criteria: SearchCriteria,
) -> MatchKind | None:
    """Decide whether and why a session matches.

    Priority: id, then title, then content. The content check runs only
    when content search is on, title-only is off, and nothing cheaper
    matched.

    Args:
        session_id: Session id from the file name.
        title_lower: Derived title, lower-cased.
        content: Raw file content.
        criteria: Search criteria.

    Returns:
        The match kind, or None if the session does not match.
    """
    needle = criteria.pattern.lower()
    if not needle:
        return MatchKind.NONE
    if needle in session_id.lower():
        return MatchKind.ID
    if needle in title_lower:
        return MatchKind.TITLE
    if criteria.search_content and not criteria.title_only and needle in content.lower():
        return MatchKind.CONTENT
    return None


# ---------------------------------------------------------------------------
# ParallelScanPipeline
# ---------------------------------------------------------------------------


class ParallelScanPipeline:
    """Evaluates session file candidates across a pool of worker threads.

    Stages per candidate: date filter (metadata only), content read, title
    derivation, match classification. Per-candidate failures drop the
    candidate and never abort the scan.
    """

    def __init__(self, criteria: SearchCriteria, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        """Initialize the pipeline.

        Args:
            criteria: Validated search criteria.
            max_workers: Size of the worker pool.
        """
        self.criteria = criteria
        self.max_workers = max_workers

    def run(self, candidates: list[SessionFile]) -> ScanReport:
        """Evaluate every candidate.

        Args:
            candidates: Session files to evaluate.

        Returns:
            ScanReport with the matches (unordered) and the counters.
        """
        if not candidates:
            return ScanReport()

        counters = ScanCounters()

        workers = min(self.max_workers, len(candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="session_scan") as executor:
            evaluated = list(executor.map(lambda c: self.evaluate(c, counters), candidates))

        results = [result for result in evaluated if result is not None]
        logger.info(
            f"Scanned {counters.scanned} of {len(candidates)} files "
            f"({counters.skipped_by_date} skipped by date), {len(results)} matched"
        )
        return ScanReport(
            results=results,
            total=len(candidates),
            scanned=counters.scanned,
            skipped_by_date=counters.skipped_by_date,
        )

    def evaluate(self, candidate: SessionFile, counters: ScanCounters) -> SearchResult | None:
        """Run one candidate through every stage.

        Returns:
            SearchResult if the candidate matches, None if it was filtered
            out or could not be read.
        """
        criteria = self.criteria
        modified: datetime | None = None

        if criteria.has_date_bounds:
            try:
                modified = candidate.modified_at()
            except OSError as e:
                logger.debug(f"Cannot stat {candidate.path}: {e}")
                return None
            if not in_date_range(modified.date(), criteria.after, criteria.before):
                counters.record_skipped_by_date()
                return None

        counters.record_scanned()

        try:
            content = read_session_content(candidate.path)
        except FileUnreadable as e:
            logger.debug(str(e))
            return None

        title = extract_title_from_content(content) or DEFAULT_TITLE
        match_kind = classify_match(candidate.session_id, title.lower(), content, criteria)
        if match_kind is None:
            return None

        if modified is None:
            try:
                modified = candidate.modified_at()
            except OSError as e:
                logger.debug(f"Cannot stat {candidate.path}: {e}")
                return None

        return SearchResult(
            title=title,
            workspace=candidate.workspace,
            modified=format_timestamp(modified),
            message_count=count_messages(content),
            match_kind=match_kind,
            path=candidate.path,
        )


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def rank_results(results: list[SearchResult], limit: int) -> RankedResults:
    """Order results newest first and keep at most limit of them.

    Sorting compares the formatted timestamp strings (see TIMESTAMP_FORMAT).
    The sort is stable, so equal timestamps keep their input order.
    """
    ordered = sorted(results, key=lambda r: r.modified, reverse=True)
    return RankedResults(results=ordered[:limit], matched=len(results), limit=limit)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def search_sessions(criteria: SearchCriteria, config: SearchConfig | None = None) -> SearchOutcome:
    """Search chat sessions across all workspaces.

    Args:
        criteria: Search criteria.
        config: Settings (storage root, worker count, layout names).

    Returns:
        SearchOutcome. A missing storage root yields status NO_STORAGE
        rather than an exception.

    Raises:
        DateBoundUnparseable: If the criteria have an empty date range.
        ValueError: If the limit is less than 1.
        OSError: If the storage root exists but cannot be listed.
    """
    config = config or SearchConfig()
    criteria.validate()

    try:
        root = locate_storage_root(config.storage_root)
    except StorageRootMissing as e:
        logger.info(str(e))
        return SearchOutcome(criteria=criteria, status=SearchStatus.NO_STORAGE, message=str(e))

    workspaces = locate_candidate_workspaces(
        root,
        WorkspaceFilter(criteria.workspace_filter),
        sessions_dir_name=config.sessions_dir_name,
        descriptor_name=config.descriptor_name,
    )
    if not workspaces:
        return SearchOutcome(
            criteria=criteria,
            status=SearchStatus.NO_WORKSPACES,
            storage_root=root,
        )

    index = build_candidate_index(workspaces, extension=config.session_extension)
    if index.total == 0:
        return SearchOutcome(
            criteria=criteria,
            status=SearchStatus.NO_CANDIDATES,
            workspaces=len(workspaces),
            storage_root=root,
        )

    report = ParallelScanPipeline(criteria, max_workers=config.max_workers).run(index.files)
    ranked = rank_results(report.results, criteria.limit)

    return SearchOutcome(
        criteria=criteria,
        status=SearchStatus.OK if ranked.results else SearchStatus.NO_MATCHES,
        results=ranked.results,
        matched=ranked.matched,
        scanned=report.scanned,
        total_candidates=report.total,
        skipped_by_date=report.skipped_by_date,
        limit_reached=ranked.limit_reached,
        workspaces=len(workspaces),
        storage_root=root,
    )
