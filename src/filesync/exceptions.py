"""Custom exceptions for the filesync package."""

from pathlib import Path
from typing import Optional


class FileSyncError(Exception):
    """Base exception for all filesync errors."""
    pass


class ConfigError(FileSyncError):
    """Settings are missing or malformed."""
    pass


class RootError(FileSyncError):
    """Error related to the watch root."""
    pass


class RootNotFoundError(RootError):
    """Watch root does not exist."""
    pass


class RootNotADirectoryError(RootError):
    """Watch root exists but is not a directory."""
    pass


class WatchError(FileSyncError):
    """The filesystem observer could not be started."""
    pass


class ObservationError(FileSyncError):
    """The event source failed to report on some changes."""

    def __init__(self, message: str, path: Optional[Path] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.path = path
        self.cause = cause


class ResolutionError(FileSyncError):
    """A path could not be resolved relative to the watch root."""

    def __init__(self, message: str, path: Path, root: Path):
        super().__init__(message)
        self.path = path
        self.root = root


class UploadError(FileSyncError):
    """Error while delivering a file."""
    pass


class TransportError(UploadError):
    """Network-level failure during an upload."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ServerRejectedError(UploadError):
    """Endpoint answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class RequestBuildError(UploadError):
    """The upload request could not be encoded, e.g. an undecodable file name."""
    pass


class AgentError(FileSyncError):
    """Error in the sync agent lifecycle."""
    pass


class AgentAlreadyRunningError(AgentError):
    """Sync agent is already running."""
    pass
