import threading
import time
from pathlib import Path

import pytest

from domains.file_ingest.collectors.inbox_watcher import InboxWatcher, WatcherState
from domains.file_ingest.processors.pipeline import InboxProcessor


class RecordingProcessor(InboxProcessor):
    """Records each processing attempt together with the content it saw."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.attempts: list[tuple[str, str]] = []
        self.done = threading.Event()

    def process_file_safely(self, input_path, output_root=None):
        path = Path(input_path)
        self.attempts.append((path.name, path.read_text(encoding="utf-8")))
        self.done.set()
        return None


@pytest.fixture
def recorder(settings):
    return RecordingProcessor(settings=settings)


@pytest.fixture
def watcher(settings, inbox, recorder):
    # Observer is started for real but events are injected through notify().
    instance = InboxWatcher(processor=recorder, settings=settings, process_existing=False)
    yield instance
    instance.stop()


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


def test_burst_of_events_is_processed_once_with_final_content(watcher, recorder, inbox):
    target = inbox / "draft.md"
    watcher.start()

    target.write_text("first\n", encoding="utf-8")
    watcher.notify(target, created=True)
    target.write_text("second\n", encoding="utf-8")
    watcher.notify(target)

    assert recorder.done.wait(5)
    assert wait_until(lambda: watcher.pending() == 0)
    time.sleep(watcher.debounce_seconds * 2)

    assert recorder.attempts == [("draft.md", "second\n")]


def test_unsupported_created_file_warns_but_is_not_scheduled(watcher, inbox, log_messages):
    watcher.start()
    watcher.notify(inbox / "photo.png", created=True)
    watcher.notify(inbox / "photo.png")

    assert watcher.pending() == 0
    warnings = [message for level, message in log_messages if level == "WARNING"]
    assert warnings == ["Unsupported file type: photo.png"]


def test_hidden_and_generated_paths_are_ignored(watcher, inbox, settings):
    watcher.start()
    watcher.notify(inbox / ".cache" / "x.py", created=True)
    watcher.notify(inbox / "__pycache__" / "y.py", created=True)
    watcher.notify(settings.docs_output_dir / "page.md", created=True)
    assert watcher.pending() == 0


def test_file_removed_before_processing_is_skipped(watcher, recorder, inbox, log_messages):
    target = inbox / "temp.txt"
    target.write_text("x", encoding="utf-8")
    watcher.start()
    watcher.notify(target, created=True)
    target.unlink()

    assert wait_until(lambda: ("INFO", "File removed before processing: temp.txt") in log_messages)
    assert recorder.attempts == []


def test_lifecycle(watcher):
    assert watcher.state is WatcherState.STOPPED
    watcher.start()
    assert watcher.state is WatcherState.ACTIVE

    watcher.stop()
    assert watcher.state is WatcherState.CLOSED
    watcher.stop()
    assert watcher.state is WatcherState.CLOSED

    with pytest.raises(RuntimeError):
        watcher.start()


def test_stop_drops_pending_deadlines(settings, inbox, recorder, log_messages):
    watcher = InboxWatcher(processor=recorder, settings=settings, debounce_seconds=30, process_existing=False)
    target = inbox / "slow.txt"
    target.write_text("x", encoding="utf-8")

    watcher.start()
    watcher.notify(target, created=True)
    assert watcher.pending() == 1

    watcher.stop()

    assert watcher.pending() == 0
    assert ("INFO", "Dropped 1 pending file event(s)") in log_messages
    assert recorder.attempts == []


def test_events_after_stop_are_ignored(watcher, inbox):
    watcher.start()
    watcher.stop()
    watcher.notify(inbox / "late.py", created=True)
    assert watcher.pending() == 0


def test_many_pending_files_share_one_scheduler_thread(settings, inbox, recorder):
    for index in range(300):
        (inbox / f"note_{index:03d}.txt").write_text("x", encoding="utf-8")
    before = threading.active_count()

    watcher = InboxWatcher(processor=recorder, settings=settings, debounce_seconds=30, process_existing=True)
    try:
        watcher.start()
        assert watcher.pending() == 300
        # worker, scheduler and the observer's own threads
        assert threading.active_count() <= before + 10
    finally:
        watcher.stop()

    assert watcher.pending() == 0
    assert recorder.attempts == []


def test_rescheduling_keeps_a_single_deadline_per_path(watcher, inbox, log_messages):
    target = inbox / "busy.txt"
    target.write_text("x", encoding="utf-8")
    watcher.debounce_seconds = 30
    watcher.start()

    for _ in range(5):
        watcher.notify(target)

    assert watcher.pending() == 1
    resets = [message for level, message in log_messages if message == "Debounce reset: busy.txt"]
    assert len(resets) == 4


def test_failed_initial_scan_closes_the_watcher(settings, inbox, recorder, monkeypatch, log_messages):
    watcher = InboxWatcher(processor=recorder, settings=settings, process_existing=True)

    def broken_scan():
        raise OSError("inbox unreadable")

    monkeypatch.setattr(watcher, "scan_existing", broken_scan)

    with pytest.raises(OSError):
        watcher.start()

    assert watcher.state is WatcherState.CLOSED
    assert not watcher.observer.is_alive()
    assert watcher._scheduler is None
    assert watcher._worker is None
    assert ("ERROR", f"Initial scan of {watcher.inbox_dir} failed: inbox unreadable") in log_messages
