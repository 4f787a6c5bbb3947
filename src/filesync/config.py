"""Configuration for the filesync package."""

import fnmatch
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ConfigError
from .filters import normalize_extensions
from .models import WatchMode

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_PATTERNS = [
    "*.tmp",
    "*.swp",
    "*.swx",
    "*~",
    "~$*",
    ".~lock.*#",
    ".DS_Store",
    "Thumbs.db",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class SyncConfig:
    """
    Configuration options for the sync agent.

    Attributes:
        target_path: Directory to observe
        upload_url: Destination endpoint
        upload_file_extensions: Extension allow-list (None disables filtering)
        recursive: Whether nested subdirectories are observed
        send_path: Whether routing segments are sent as the ``path`` part
        upload_url_suffix: Fixed suffix appended to upload_url
        debounce_ms: Quiet window before a path is considered settled
        flush_interval_ms: How often the debouncer is checked for settled paths
        poll_interval_ms: Bounded wait of the dispatch loop for a batch
        request_timeout: HTTP timeout in seconds
        upload_workers: Size of the upload pool (1 means strictly sequential)
        ignore_patterns: Glob patterns for files the event source drops
    """
    target_path: Path
    upload_url: str
    upload_file_extensions: Optional[List[str]] = None
    recursive: bool = True
    send_path: bool = True
    upload_url_suffix: str = ""
    debounce_ms: int = 2000
    flush_interval_ms: int = 100
    poll_interval_ms: int = 500
    request_timeout: float = 30.0
    upload_workers: int = 1
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))

    def __post_init__(self):
        if isinstance(self.target_path, str):
            self.target_path = Path(self.target_path)
        explicit = self.upload_file_extensions is not None
        self.upload_file_extensions = normalize_extensions(self.upload_file_extensions)
        if explicit and self.upload_file_extensions is None:
            logger.warning("upload_file_extensions is empty; extension filtering is disabled and every file will be uploaded")
        if not self.upload_url:
            raise ConfigError("upload_url must not be empty")
        if self.debounce_ms < 0:
            raise ConfigError(f"debounce_ms must be >= 0, got {self.debounce_ms}")
        if self.flush_interval_ms <= 0:
            raise ConfigError(f"flush_interval_ms must be > 0, got {self.flush_interval_ms}")
        if self.poll_interval_ms <= 0:
            raise ConfigError(f"poll_interval_ms must be > 0, got {self.poll_interval_ms}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be > 0, got {self.request_timeout}")
        if self.upload_workers < 1:
            raise ConfigError(f"upload_workers must be >= 1, got {self.upload_workers}")

    @property
    def watch_mode(self) -> WatchMode:
        return WatchMode.RECURSIVE if self.recursive else WatchMode.NON_RECURSIVE

    @property
    def upload_endpoint(self) -> str:
        """The URL uploads are posted to, with the suffix applied."""
        if not self.upload_url_suffix:
            return self.upload_url
        return self.upload_url.rstrip("/") + "/" + self.upload_url_suffix.lstrip("/")

    def should_ignore(self, path: Path) -> bool:
        """
        Check if a path should be ignored based on ignore patterns.

        Args:
            path: Path to check

        Returns:
            True if the path should be ignored
        """
        name = path.name
        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(name, pattern):
                return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "target_path": str(self.target_path),
            "upload_url": self.upload_url,
            "upload_endpoint": self.upload_endpoint,
            "upload_file_extensions": self.upload_file_extensions,
            "recursive": self.recursive,
            "send_path": self.send_path,
            "debounce_ms": self.debounce_ms,
            "flush_interval_ms": self.flush_interval_ms,
            "poll_interval_ms": self.poll_interval_ms,
            "request_timeout": self.request_timeout,
            "upload_workers": self.upload_workers,
            "ignore_patterns": list(self.ignore_patterns),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SyncConfig":
        """
        Build a config from a key/value source.

        Values may already be typed or be strings as read from a settings
        file: lists are comma separated, booleans accept true/false,
        yes/no, on/off and 1/0.

        Raises:
            ConfigError: If a required key is missing or a value is malformed
        """
        missing = [key for key in ("target_path", "upload_url") if not data.get(key)]
        if missing:
            raise ConfigError(f"Missing required setting(s): {', '.join(missing)}")

        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            kwargs[key] = _coerce(key, value)

        return cls(**kwargs)


def _coerce(key: str, value: Any) -> Any:
    """Convert a raw setting to the type of the matching field."""
    if key in ("upload_file_extensions", "ignore_patterns"):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return list(value)

    if key in ("recursive", "send_path"):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigError(f"Invalid boolean for {key}: {value!r}")

    if key in ("debounce_ms", "flush_interval_ms", "poll_interval_ms", "upload_workers"):
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid integer for {key}: {value!r}") from e

    if key == "request_timeout":
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid number for {key}: {value!r}") from e

    if key == "target_path":
        return Path(str(value)).expanduser()

    return str(value)
