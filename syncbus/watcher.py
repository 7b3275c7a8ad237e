"""Watches the local directory and publishes a watcher event per change."""

from __future__ import annotations

import logging
import os
import uuid
from typing import Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from syncbus.eventbus import EventBus, Topic
from syncbus.models import FileEventType, FileWatcherEvent

log = logging.getLogger(__name__)

_EVENT_TYPES = {
    EVENT_TYPE_CREATED: FileEventType.CREATE,
    EVENT_TYPE_MODIFIED: FileEventType.MODIFY,
    EVENT_TYPE_DELETED: FileEventType.DELETE,
}


class _Handler(FileSystemEventHandler):
    def __init__(self, watcher: "FileWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def dispatch(self, event: FileSystemEvent) -> None:
        self._watcher._on_filesystem_event(event)


class FileWatcher:
    """Publishes a FileWatcherEvent for every change in the local directory."""

    def __init__(self, local_dir: str, remote_dir: str, event_bus: EventBus) -> None:
        if not os.path.exists(local_dir):
            raise FileNotFoundError(f"no such directory: {local_dir}")
        if not os.path.isdir(local_dir):
            raise NotADirectoryError(f"not a directory: {local_dir}")
        self.local_dir = local_dir
        self.remote_dir = remote_dir
        self.event_bus = event_bus
        self._observer: Optional[Observer] = None

    def start(self) -> None:
        """Begin watching; creates the local directory if it has gone."""
        log.info("Setting up a watcher for directory: %s", self.local_dir)
        if not os.path.exists(self.local_dir):
            log.info("Directory '%s' does not exist, creating it.", self.local_dir)
            try:
                os.mkdir(self.local_dir, 0o755)
            except OSError as exc:
                raise OSError(f"failed to create directory: {exc}") from exc

        observer = Observer()
        observer.schedule(_Handler(self), self.local_dir, recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        """Stop watching."""
        observer, self._observer = self._observer, None
        if observer is not None:
            try:
                observer.stop()
                if observer.is_alive():
                    observer.join()
            except Exception as exc:
                log.info("Error closing watcher: %s", exc)
        log.info("FileWatcher closed.")

    def handle_event(
        self, event_type: Optional[FileEventType], path: str
    ) -> FileWatcherEvent:
        """Publish a watcher event for a change on ``path`` and return it."""
        event = FileWatcherEvent(
            event_uuid=str(uuid.uuid4()),
            source_file_path=path,
            dest_file_path=self.remote_dir + "/" + os.path.basename(path),
            event_type=event_type,
        )
        log.info("FileWatcherEvent created: %s", event)
        self.event_bus.publish(Topic.WATCHER_EVENT, event)
        return event

    def _is_watched_dir(self, path: str) -> bool:
        return os.path.abspath(path) == os.path.abspath(self.local_dir)

    def _on_filesystem_event(self, event: FileSystemEvent) -> None:
        log.info("Received watcher event: %s", event)
        src_path = os.fsdecode(event.src_path)
        if self._is_watched_dir(src_path):
            return

        if event.event_type == EVENT_TYPE_MOVED:
            self.handle_event(None, src_path)
            dest_path = os.fsdecode(event.dest_path)
            if self._is_watched_dir(os.path.dirname(os.path.abspath(dest_path))):
                self.handle_event(FileEventType.CREATE, dest_path)
            return

        event_type = _EVENT_TYPES.get(event.event_type)
        if event_type is not None:
            self.handle_event(event_type, src_path)