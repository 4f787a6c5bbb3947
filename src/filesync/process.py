"""Main sync agent orchestrator."""

import logging
import queue
import threading
import time
from typing import List, Optional

import httpx

from .config import SyncConfig
from .debouncer import Debouncer
from .dispatcher import Dispatcher
from .exceptions import AgentAlreadyRunningError, ObservationError
from .fs_watcher import EventSource
from .models import SettledBatch, WatchRoot
from .uploader import create_client

logger = logging.getLogger(__name__)


class SyncAgent:
    """
    Main orchestrator for the watch-debounce-deliver pipeline.

    The watchdog observer feeds the debouncer from its own thread. A
    flush loop moves settled batches onto an in-memory queue, and a
    single dispatch loop drains that queue and performs the uploads.
    """

    def __init__(self, config: SyncConfig, client: Optional[httpx.Client] = None):
        """
        Initialize the sync agent.

        Args:
            config: Sync configuration
            client: HTTP client to use; one is created (and later closed)
                from the config if omitted

        Raises:
            RootNotFoundError: If the target path does not exist
            RootNotADirectoryError: If the target path is not a directory
        """
        self.config = config
        self.root = WatchRoot.create(config.target_path, config.watch_mode)

        self._owns_client = client is None
        self._client = client if client is not None else create_client(config)

        self._debouncer = Debouncer(config.debounce_ms)
        self._batches: "queue.Queue[SettledBatch]" = queue.Queue()
        self._dispatcher = Dispatcher(config, self.root, self._client)
        self._event_source = EventSource(
            self.root,
            self._debouncer.add,
            self._on_observation_error,
            config.should_ignore,
        )

        self._running = False
        self._stop_event = threading.Event()
        self._observation_lost = False
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    def _on_observation_error(self, error: ObservationError) -> None:
        self._debouncer.add_error(error)

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def is_running(self) -> bool:
        """Check if the agent is running."""
        return self._running

    def start(self) -> None:
        """
        Start the agent (blocking).

        Blocks until stop() is called or the process is interrupted.

        Raises:
            AgentAlreadyRunningError: If already running
            WatchError: If the root cannot be watched
        """
        self.start_async()
        try:
            while not self._stop_event.is_set():
                self._stop_event.wait(timeout=0.5)
        except KeyboardInterrupt:
            pass
        finally:
            self._shutdown()

    def start_async(self) -> None:
        """
        Start the agent in the background.

        Raises:
            AgentAlreadyRunningError: If already running
            WatchError: If the root cannot be watched
        """
        with self._lock:
            if self._running:
                raise AgentAlreadyRunningError("Sync agent is already running")
            self._stop_event.clear()
            self._observation_lost = False
            self._event_source.start()
            self._running = True

        self._threads = [
            threading.Thread(target=self._flush_loop, name="FlushLoop"),
            threading.Thread(
                target=self._dispatcher.run,
                args=(self._batches, self._stop_event),
                name="DispatchLoop",
            ),
        ]
        for thread in self._threads:
            thread.daemon = True
            thread.start()

        logger.info(f"Sync agent started, uploading to {self.config.upload_endpoint}")

    def stop(self) -> None:
        """
        Stop the agent gracefully.

        No further events are observed, an upload in progress is allowed
        to finish, and paths that have not settled yet are discarded.
        """
        self._stop_event.set()
        self._shutdown()

    def _shutdown(self) -> None:
        """Internal shutdown procedure."""
        with self._lock:
            if not self._running:
                return
            self._running = False

        self._stop_event.set()
        self._event_source.stop()

        for thread in self._threads:
            if thread.is_alive():
                thread.join(timeout=self.config.request_timeout + 1.0)
        self._threads.clear()

        discarded = self._debouncer.pending_count() + self._batches.qsize()
        self._debouncer.clear()
        while not self._batches.empty():
            try:
                self._batches.get_nowait()
            except queue.Empty:
                break
        if discarded:
            logger.info(f"Discarded {discarded} unsettled item(s) on shutdown")

        logger.info(f"Sync agent stopped: {self._dispatcher.stats.to_dict()}")

    def _flush_loop(self) -> None:
        """Worker loop that periodically moves settled batches to the queue."""
        flush_interval = self.config.flush_interval_ms / 1000.0
        logger.debug(f"Flush loop started, interval={flush_interval}s")

        while not self._stop_event.is_set():
            try:
                self._check_observer()
                for batch in self._debouncer.flush(time.time()):
                    logger.debug(f"Enqueuing batch {batch.batch_id} with {len(batch)} item(s)")
                    self._batches.put(batch)
            except Exception as e:
                logger.error(f"Flush loop error: {e}")

            self._stop_event.wait(timeout=flush_interval)

    def _check_observer(self) -> None:
        """Report the first time the observer is found dead while running."""
        if self._observation_lost or self._stop_event.is_set():
            return
        if self._event_source.is_alive:
            return
        self._observation_lost = True
        self._debouncer.add_error(ObservationError(
            f"Filesystem observer for {self.root.path} stopped unexpectedly; no further changes will be seen",
            path=self.root.path,
        ))

    def close(self) -> None:
        """Stop the agent and release all resources."""
        self.stop()
        self._dispatcher.close()
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
