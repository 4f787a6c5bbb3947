"""Drain settled batches and deliver qualifying files."""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import httpx

from .config import SyncConfig
from .exceptions import ResolutionError
from .filters import skip_reason
from .models import (
    ChangeKind,
    OutcomeKind,
    SettledBatch,
    UploadCandidate,
    UploadOutcome,
    WatchRoot,
)
from .paths import resolve_segments
from .uploader import upload

logger = logging.getLogger(__name__)


@dataclass
class DispatchStats:
    """Running totals since the dispatcher was created."""
    batches: int = 0
    uploaded: int = 0
    rejected: int = 0
    failed: int = 0
    skipped: int = 0
    observation_errors: int = 0

    def record(self, outcome: UploadOutcome) -> None:
        if outcome.kind is OutcomeKind.SUCCESS:
            self.uploaded += 1
        elif outcome.kind is OutcomeKind.SERVER_REJECTED:
            self.rejected += 1
        elif outcome.kind is OutcomeKind.TRANSPORT_ERROR:
            self.failed += 1
        else:
            self.skipped += 1

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class Dispatcher:
    """
    Turns settled batches into uploads.

    Only content modifications are delivered. Every failure is logged
    and the file is dropped; nothing here stops the pipeline. One batch
    is finished completely before the next one is taken, so repeated
    modifications of a path are uploaded in order.
    """

    def __init__(self, config: SyncConfig, root: WatchRoot, client: httpx.Client):
        """
        Initialize the dispatcher.

        Args:
            config: Sync configuration
            root: Canonical watch root used for routing segments
            client: HTTP client reused for every upload
        """
        self.config = config
        self.root = root
        self.client = client
        self.stats = DispatchStats()
        self._url = config.upload_endpoint
        self._executor: Optional[ThreadPoolExecutor] = None
        if config.upload_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=config.upload_workers,
                thread_name_prefix="Upload",
            )

    def run(self, batches: "queue.Queue[SettledBatch]", stop_event: threading.Event) -> None:
        """
        Process batches until stop_event is set.

        Waits on the queue with a bounded timeout so the thread sleeps
        while idle and still notices the stop signal.
        """
        timeout = self.config.poll_interval_ms / 1000.0
        logger.debug(f"Dispatch loop started, poll timeout={timeout}s")

        while not stop_event.is_set():
            try:
                batch = batches.get(timeout=timeout)
            except queue.Empty:
                continue

            if stop_event.is_set():
                break

            try:
                self.handle_batch(batch)
            except Exception as e:
                logger.exception(f"Dispatch error in batch {batch.batch_id}: {e}")

        logger.debug("Dispatch loop stopped")

    def handle_batch(self, batch: SettledBatch) -> List[UploadOutcome]:
        """
        Process one settled batch.

        Args:
            batch: Batch produced by the debouncer

        Returns:
            One outcome per modified path in the batch
        """
        self.stats.batches += 1

        if batch.is_error_batch:
            for error in batch.errors:
                self.stats.observation_errors += 1
                logger.error(f"Observation error: {error}")
            return []

        outcomes: List[UploadOutcome] = []
        candidates: List[UploadCandidate] = []

        for change in batch.changes:
            if change.kind is not ChangeKind.MODIFIED:
                logger.debug(f"Ignoring {change.kind.value} change: {change.path}")
                continue
            if change.path.is_dir():
                logger.debug(f"Ignoring directory change: {change.path}")
                continue
            prepared = self.prepare(change.path)
            if isinstance(prepared, UploadOutcome):
                outcomes.append(prepared)
            else:
                candidates.append(prepared)

        outcomes.extend(self._deliver_all(candidates))

        for outcome in outcomes:
            self._record(outcome)
        return outcomes

    def prepare(self, path: Path) -> Union[UploadCandidate, UploadOutcome]:
        """
        Apply the filter and, if enabled, compute routing segments.

        Returns:
            An UploadCandidate, or a SKIPPED outcome explaining why not
        """
        reason = skip_reason(path, self.config.upload_file_extensions)
        if reason is not None:
            return UploadOutcome.skipped(path, reason)

        segments = None
        if self.config.send_path:
            try:
                segments = tuple(resolve_segments(path, self.root.path))
            except ResolutionError as e:
                logger.warning(f"Cannot resolve {path} against {self.root.path}: {e}")
                return UploadOutcome.skipped(path, "unresolvable path")

        return UploadCandidate(path=path, routing_segments=segments)

    def deliver(self, candidate: UploadCandidate) -> UploadOutcome:
        """
        Upload a single prepared candidate.

        An unexpected exception is logged and becomes this candidate's
        TRANSPORT_ERROR outcome.
        """
        logger.debug(f"Uploading {candidate.path!r} to {self._url}")
        try:
            return upload(self.client, candidate.path, self._url, candidate.routing_segments)
        except Exception as e:
            logger.exception(f"Unexpected error uploading {candidate.path!r}")
            return UploadOutcome.transport_error(candidate.path, f"{type(e).__name__}: {e}")

    def process_path(self, path: Path) -> UploadOutcome:
        """Filter, resolve, upload and log a single path outside any batch."""
        prepared = self.prepare(path)
        outcome = prepared if isinstance(prepared, UploadOutcome) else self.deliver(prepared)
        self._record(outcome)
        return outcome

    def _deliver_all(self, candidates: List[UploadCandidate]) -> List[UploadOutcome]:
        if self._executor is None or len(candidates) < 2:
            return [self.deliver(candidate) for candidate in candidates]
        return list(self._executor.map(self.deliver, candidates))

    def _record(self, outcome: UploadOutcome) -> None:
        self.stats.record(outcome)

        if outcome.kind is OutcomeKind.SUCCESS:
            logger.info(f"Sent to server: {outcome.path}")
        elif outcome.kind is OutcomeKind.SERVER_REJECTED:
            logger.error(f"Send error, file: {outcome.path}, status: {outcome.status_code}")
        elif outcome.kind is OutcomeKind.TRANSPORT_ERROR:
            logger.error(f"File send error: {outcome.path}; {outcome.cause}")
        else:
            logger.debug(f"Skipped {outcome.path}: {outcome.reason}")

    def close(self) -> None:
        """Release the upload pool; in-flight uploads are allowed to finish."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
