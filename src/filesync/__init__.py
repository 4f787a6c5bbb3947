"""
File Sync Agent Package

Watches a directory tree, waits for bursts of writes to settle, and
uploads each modified file to an HTTP endpoint as a multipart request.

Features:
- Recursive or single-level watching
- Per-path debouncing with a configurable quiet window
- Case-insensitive extension allow-list
- Routing metadata from the file's directory relative to the root
- Classified upload outcomes, logged without stopping the pipeline
"""

from .models import (
    WatchMode,
    WatchRoot,
    ChangeKind,
    RawEvent,
    SettledChange,
    SettledBatch,
    UploadCandidate,
    OutcomeKind,
    UploadOutcome,
)

from .config import SyncConfig

from .exceptions import (
    FileSyncError,
    ConfigError,
    RootError,
    RootNotFoundError,
    RootNotADirectoryError,
    WatchError,
    ObservationError,
    ResolutionError,
    UploadError,
    TransportError,
    ServerRejectedError,
    RequestBuildError,
    AgentError,
    AgentAlreadyRunningError,
)

from .filters import normalize_extensions, qualifies, skip_reason
from .paths import resolve_segments, join_segments
from .uploader import upload, create_client
from .debouncer import Debouncer
from .fs_watcher import EventSource, FSEventHandler
from .dispatcher import Dispatcher, DispatchStats
from .settings import load_config
from .process import SyncAgent


__all__ = [
    # Models
    "WatchMode",
    "WatchRoot",
    "ChangeKind",
    "RawEvent",
    "SettledChange",
    "SettledBatch",
    "UploadCandidate",
    "OutcomeKind",
    "UploadOutcome",
    # Config
    "SyncConfig",
    "load_config",
    # Exceptions
    "FileSyncError",
    "ConfigError",
    "RootError",
    "RootNotFoundError",
    "RootNotADirectoryError",
    "WatchError",
    "ObservationError",
    "ResolutionError",
    "UploadError",
    "TransportError",
    "ServerRejectedError",
    "RequestBuildError",
    "AgentError",
    "AgentAlreadyRunningError",
    # Components
    "normalize_extensions",
    "qualifies",
    "skip_reason",
    "resolve_segments",
    "join_segments",
    "upload",
    "create_client",
    "Debouncer",
    "EventSource",
    "FSEventHandler",
    "Dispatcher",
    "DispatchStats",
    # Main Process
    "SyncAgent",
]

__version__ = "0.1.0"
