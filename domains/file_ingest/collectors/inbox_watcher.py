"""
Inbox watcher for the File Ingestion domain.

Monitors the inbox directory tree and regenerates a documentation page
whenever a supported file is created or changed. Uses the watchdog library
for cross-platform file system event monitoring.

Editors and copy tools often write a file several times per save, so each
path gets its own debounce deadline: the file is processed only once it has
been quiet for ``debounce_seconds``. A single scheduler thread watches the
deadline table and moves stable files onto a queue drained by a single
worker thread, one file at a time. Thread count does not grow with the
number of pending files.
"""

import queue
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from loguru import logger
from watchdog.events import DirModifiedEvent, FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from inboxdocs.utils.config import Settings, get_settings
from inboxdocs.utils.helpers import normalise_path

from ..processors.pipeline import InboxProcessor, iter_candidate_files


class WatcherState(str, Enum):
    """Lifecycle of a watch session. CLOSED is terminal."""
    STOPPED = "stopped"
    ACTIVE = "active"
    CLOSED = "closed"


class InboxEventHandler(FileSystemEventHandler):
    """Forwards file creations and modifications to the watcher."""

    def __init__(self, watcher: "InboxWatcher"):
        """
        Initialize event handler.

        Args:
            watcher: Watcher that owns the debounce table
        """
        super().__init__()
        self.watcher = watcher

    def dispatch(self, event: FileSystemEvent) -> None:
        # A failure handling one event must not kill the observer thread.
        try:
            super().dispatch(event)
        except Exception as e:
            logger.error(f"Watcher error on {getattr(event, 'src_path', '?')}: {e}")

    def on_created(self, event: FileSystemEvent):
        """Handle file creation."""
        if event.is_directory:
            return
        self.watcher.notify(event.src_path, created=True)

    def on_modified(self, event: FileSystemEvent):
        """Handle file modification."""
        # Skip directory modifications (too noisy)
        if event.is_directory or isinstance(event, DirModifiedEvent):
            return
        self.watcher.notify(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Handle rename/move: the destination is a new file."""
        if event.is_directory:
            return
        dest = getattr(event, "dest_path", None)
        if dest:
            self.watcher.notify(dest, created=True)


class InboxWatcher:
    """Watch session over one inbox directory: STOPPED -> ACTIVE -> CLOSED."""

    def __init__(
        self,
        processor: Optional[InboxProcessor] = None,
        inbox_dir: Optional[Path] = None,
        output_dir: Optional[Path] = None,
        debounce_seconds: Optional[float] = None,
        process_existing: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize inbox watcher.

        Args:
            processor: Pipeline used for stable files
            inbox_dir: Directory to watch (recursively)
            output_dir: Page directory passed to the pipeline
            debounce_seconds: Quiet period before a file is processed
            process_existing: Treat files already present at start as new
            settings: Settings instance (defaults to cached settings)
        """
        self.settings = settings or get_settings()
        self.processor = processor or InboxProcessor(settings=self.settings)
        self.inbox_dir = normalise_path(Path(inbox_dir or self.settings.inbox_dir))
        self.output_dir = normalise_path(Path(output_dir)) if output_dir else self.processor.output_dir
        self.debounce_seconds = (
            self.settings.debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self.process_existing = (
            self.settings.process_existing if process_existing is None else process_existing
        )

        self.state = WatcherState.STOPPED
        self.event_handler = InboxEventHandler(self)
        self.observer: Optional[Observer] = None

        self._lock = threading.Lock()
        self._wakeup = threading.Condition(self._lock)
        # path -> time.monotonic() at which it counts as stable
        self._deadlines: Dict[Path, float] = {}
        self._queue: "queue.Queue[Optional[Path]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._scheduler: Optional[threading.Thread] = None

    # Lifecycle -----------------------------------------------------------------

    def start(self):
        """
        Subscribe to the inbox and start the worker.

        Raises:
            RuntimeError: If this instance was already started
        """
        if self.state is not WatcherState.STOPPED:
            raise RuntimeError("InboxWatcher cannot be restarted; create a new instance")

        if not self.inbox_dir.exists():
            self.inbox_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created inbox directory: {self.inbox_dir}")
        self.output_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Starting inbox watcher on: {self.inbox_dir}")
        logger.info(f"Output directory: {self.output_dir}")
        logger.info(
            f"Supported extensions: {', '.join(sorted(self.processor.registry.supported_extensions()))}"
        )

        with self._lock:
            self.state = WatcherState.ACTIVE
        self._worker = threading.Thread(target=self._work, name="inbox-worker", daemon=True)
        self._worker.start()
        self._scheduler = threading.Thread(
            target=self._release_stable, name="inbox-debounce", daemon=True
        )
        self._scheduler.start()

        try:
            self.observer = Observer()
            self.observer.schedule(self.event_handler, str(self.inbox_dir), recursive=True)
            self.observer.start()
        except Exception as e:
            logger.error(f"Failed to watch {self.inbox_dir}: {e}")
            self.stop()
            raise

        if self.process_existing:
            try:
                self.scan_existing()
            except Exception as e:
                logger.error(f"Initial scan of {self.inbox_dir} failed: {e}")
                self.stop()
                raise

        logger.success("Inbox watcher ready. Drop files to generate MDX!")

    def stop(self):
        """
        Stop watching. Idempotent; the instance cannot be started again.

        Files still inside their quiet period are dropped; files already
        queued or being processed are finished before this returns.
        """
        with self._lock:
            previous = self.state
            self.state = WatcherState.CLOSED
            dropped = len(self._deadlines)
            self._deadlines.clear()
            self._wakeup.notify_all()

        if previous is not WatcherState.ACTIVE:
            return

        if dropped:
            logger.info(f"Dropped {dropped} pending file event(s)")

        if self.observer is not None:
            try:
                self.observer.stop()
                if self.observer.is_alive():
                    self.observer.join()
            except Exception as e:
                logger.error(f"Failed to stop observer: {e}")

        if self._scheduler is not None:
            self._scheduler.join()
            self._scheduler = None
        self._shutdown_worker()
        logger.info("Inbox watcher stopped")

    def run(self, stop_event: Optional[threading.Event] = None, poll: float = 1.0):
        """Run until ``stop_event`` is set (or KeyboardInterrupt)."""
        stop_event = stop_event or threading.Event()
        self.start()
        try:
            while not stop_event.is_set():
                stop_event.wait(poll)
        except KeyboardInterrupt:
            logger.info("Stopping inbox watcher...")
        finally:
            self.stop()

    def __enter__(self) -> "InboxWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    # Event boundary ------------------------------------------------------------

    def should_process(self, path: Path, created: bool = False) -> bool:
        """
        Check if an event path should reach the pipeline.

        Args:
            path: Normalised file path
            created: Whether this is an add event (warn on unsupported adds only)

        Returns:
            True if should process, False otherwise
        """
        if self.processor.hidden_or_excluded(path, self.inbox_dir):
            return False
        if self.processor.is_generated(path):
            return False
        if not self.processor.supports(path):
            if created:
                logger.warning(f"Unsupported file type: {path.name}")
            return False
        return True

    def notify(self, raw_path: Union[Path, str], created: bool = False):
        """Register a create/modify event for ``raw_path``."""
        if self.state is not WatcherState.ACTIVE:
            return

        path = normalise_path(Path(raw_path))
        if not self.should_process(path, created=created):
            return

        if created:
            logger.info(f"New file detected: {path.name}")
        self._schedule(path)

    def scan_existing(self) -> int:
        """Treat every file already in the inbox as newly added."""
        count = 0
        for path in iter_candidate_files(self.inbox_dir, self.processor.exclude_patterns):
            self.notify(path, created=True)
            count += 1
        logger.info(f"Initial scan found {count} file(s)")
        return count

    def pending(self) -> int:
        """Number of files waiting for their quiet period or in the queue."""
        with self._lock:
            return len(self._deadlines) + self._queue.qsize()

    # Debounce ------------------------------------------------------------------

    def _schedule(self, path: Path):
        with self._lock:
            if self.state is not WatcherState.ACTIVE:
                return
            if path in self._deadlines:
                logger.debug(f"Debounce reset: {path.name}")
            self._deadlines[path] = time.monotonic() + self.debounce_seconds
            self._wakeup.notify()

    def _release_stable(self):
        """Scheduler loop: queue every path whose deadline has passed."""
        with self._lock:
            while self.state is WatcherState.ACTIVE:
                now = time.monotonic()
                due = [path for path, deadline in self._deadlines.items() if deadline <= now]
                for path in due:
                    del self._deadlines[path]
                    self._queue.put(path)

                if self._deadlines:
                    self._wakeup.wait(min(self._deadlines.values()) - now)
                else:
                    self._wakeup.wait()

    # Worker --------------------------------------------------------------------

    def _work(self):
        while True:
            path = self._queue.get()
            try:
                if path is None:
                    return
                self._handle(path)
            except Exception as e:
                logger.error(f"Worker error on {path}: {e}")
            finally:
                self._queue.task_done()

    def _handle(self, path: Path):
        if not path.exists():
            logger.info(f"File removed before processing: {path.name}")
            return
        logger.info(f"Processing: {path.name}")
        self.processor.process_file_safely(path, self.output_dir)

    def _shutdown_worker(self):
        self.state = WatcherState.CLOSED
        if self._worker is not None:
            self._queue.put(None)
            self._worker.join()
            self._worker = None
