#!/usr/bin/env python3
"""
change_detection.py
- Watches the protected images file and reloads the matcher when it changes.
- Includes debouncing: a burst of events triggers a single reload once the file
  has been quiet for DEBOUNCE_TIME seconds, so the last write always wins.
"""

from pathlib import Path
from threading import Lock, Timer, current_thread

from loguru import logger
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from docker_cleanup.core.constants import DEBOUNCE_TIME


class PatternFileHandler(FileSystemEventHandler):
    def __init__(self, matcher, debounce=DEBOUNCE_TIME):
        super().__init__()
        self.matcher = matcher
        self.path = Path(matcher.path).resolve()
        self.debounce = debounce
        self.pending = None
        self.lock = Lock()

    def handle(self, src_path):
        if Path(src_path).resolve() != self.path:
            return

        with self.lock:
            if self.pending is not None:
                self.pending.cancel()
                logger.debug(f"[watcher] Debounced {self.path.name}, waiting for writes to settle")
            self.pending = Timer(self.debounce, self.reload)
            self.pending.daemon = True
            self.pending.start()

    def reload(self):
        with self.lock:
            if self.pending is current_thread():
                self.pending = None
        logger.info(f"[watcher] Detected change in {self.path.name}, reloading protected images.")
        try:
            self.matcher.reload()
        except Exception as e:
            logger.error(f"[watcher] Failed to reload {self.path.name}: {e}")

    def flush(self):
        """Wait for a scheduled reload to finish."""
        with self.lock:
            pending = self.pending
        if pending is not None:
            pending.join()

    def on_modified(self, event):
        self.handle(event.src_path)

    def on_created(self, event):
        self.handle(event.src_path)

    def on_moved(self, event):
        self.handle(event.dest_path)


def start(matcher):
    """
    Start watching the matcher's pattern file in a background observer thread.

    Returns:
        Observer | None: The running observer, or None if there is nothing to watch.
    """
    if not matcher.path:
        return None

    directory = Path(matcher.path).resolve().parent
    if not directory.is_dir():
        logger.warning(f"[watcher] Directory {directory} not found. Not watching {matcher.path}.")
        return None

    observer = Observer()
    observer.schedule(PatternFileHandler(matcher), str(directory), recursive=False)
    observer.daemon = True
    observer.start()
    logger.info(f"[watcher] Watching {matcher.path} for changes...")
    return observer
