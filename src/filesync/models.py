"""Data models for the filesync package."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple
import hashlib
import time

from .exceptions import ObservationError, RootNotADirectoryError, RootNotFoundError


class WatchMode(Enum):
    """Whether nested subdirectories are observed."""
    RECURSIVE = "recursive"
    NON_RECURSIVE = "non_recursive"


class ChangeKind(Enum):
    """Kinds of raw filesystem changes."""
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class OutcomeKind(Enum):
    """Result classes of a single delivery attempt."""
    SUCCESS = "success"
    SERVER_REJECTED = "server_rejected"
    TRANSPORT_ERROR = "transport_error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class WatchRoot:
    """
    The directory observed by the pipeline.

    Attributes:
        path: Canonical absolute path of the directory
        mode: Recursive or single-level observation
    """
    path: Path
    mode: WatchMode = WatchMode.RECURSIVE

    def __post_init__(self):
        if not self.path.is_absolute():
            raise ValueError(f"root must be absolute: {self.path}")

    @classmethod
    def create(cls, path: Path, mode: WatchMode = WatchMode.RECURSIVE) -> "WatchRoot":
        """
        Canonicalize and validate a directory as a watch root.

        Raises:
            RootNotFoundError: If the directory does not exist
            RootNotADirectoryError: If the path is not a directory
        """
        try:
            resolved = Path(path).expanduser().resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise RootNotFoundError(f"Watch root does not exist: {path}") from e
        if not resolved.is_dir():
            raise RootNotADirectoryError(f"Watch root is not a directory: {resolved}")
        return cls(path=resolved, mode=mode)

    @property
    def recursive(self) -> bool:
        return self.mode is WatchMode.RECURSIVE


@dataclass
class RawEvent:
    """
    Raw event from the filesystem observer before debouncing.

    Attributes:
        kind: What changed
        src_path: Path of the affected file or directory
        dest_path: New path for rename events
        is_directory: Whether the event concerns a directory
        timestamp: Unix timestamp when the event arrived
    """
    kind: ChangeKind
    src_path: Path
    dest_path: Optional[Path] = None
    is_directory: bool = False
    timestamp: float = field(default_factory=time.time)

    @property
    def paths(self) -> Tuple[Path, ...]:
        """All paths touched by this event."""
        if self.dest_path is not None:
            return (self.src_path, self.dest_path)
        return (self.src_path,)


@dataclass
class SettledChange:
    """A path whose quiet window elapsed, with its most recent change kind."""
    path: Path
    kind: ChangeKind
    first_seen: float
    last_seen: float
    event_count: int = 1


@dataclass
class SettledBatch:
    """
    Output of one debouncer flush.

    A batch carries either settled changes or observation errors,
    never both.

    Attributes:
        changes: Paths that settled in this flush, oldest activity first
        errors: Observation errors reported by the event source
        batch_id: Short identifier used in log lines
        created_at: Unix timestamp when the batch was produced
    """
    changes: List[SettledChange] = field(default_factory=list)
    errors: List[ObservationError] = field(default_factory=list)
    batch_id: str = field(default_factory=lambda: hashlib.md5(str(time.time_ns()).encode()).hexdigest()[:12])
    created_at: float = field(default_factory=time.time)

    def __post_init__(self):
        if self.changes and self.errors:
            raise ValueError("a batch holds either changes or errors")

    @property
    def is_error_batch(self) -> bool:
        return bool(self.errors)

    def __len__(self) -> int:
        return len(self.errors) if self.errors else len(self.changes)

    def __iter__(self):
        return iter(self.changes)


@dataclass(frozen=True)
class UploadCandidate:
    """A file selected for delivery, with optional routing segments."""
    path: Path
    routing_segments: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class UploadOutcome:
    """
    Classified result of one delivery attempt.

    Attributes:
        kind: Result class
        path: File that was (or was not) delivered
        status_code: HTTP status for SUCCESS and SERVER_REJECTED
        cause: Transport failure description for TRANSPORT_ERROR
        reason: Why the file was skipped for SKIPPED
    """
    kind: OutcomeKind
    path: Path
    status_code: Optional[int] = None
    cause: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, path: Path, status_code: int) -> "UploadOutcome":
        return cls(OutcomeKind.SUCCESS, path, status_code=status_code)

    @classmethod
    def rejected(cls, path: Path, status_code: int) -> "UploadOutcome":
        return cls(OutcomeKind.SERVER_REJECTED, path, status_code=status_code)

    @classmethod
    def transport_error(cls, path: Path, cause: str) -> "UploadOutcome":
        return cls(OutcomeKind.TRANSPORT_ERROR, path, cause=cause)

    @classmethod
    def skipped(cls, path: Path, reason: str) -> "UploadOutcome":
        return cls(OutcomeKind.SKIPPED, path, reason=reason)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS
