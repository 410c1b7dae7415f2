"""
File Ingestion Collectors

Long-running services that monitor the inbox directory and process files:
- inbox_watcher.py - Debounced watchdog observer feeding the processing pipeline
"""

from .inbox_watcher import InboxEventHandler, InboxWatcher, WatcherState

__all__ = ["InboxEventHandler", "InboxWatcher", "WatcherState"]
