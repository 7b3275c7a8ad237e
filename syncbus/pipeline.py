"""Pipeline stages that turn watcher events into sync tasks.

The indexer gathers file details, the differentiator decides on an
action, the syncer hands work to the worker pool and the progress tracker
reports finished transfers.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from syncbus.eventbus import EventBus, Topic
from syncbus.models import (
    ActionType,
    FileDetails,
    FileDifferentiatorEvent,
    FileEventType,
    FileIndexerEvent,
    FileWatcherEvent,
    ProgressTrackerEvent,
    SyncTask,
)
from syncbus.tasks import Task, TaskManager, create_task

log = logging.getLogger(__name__)

_PLACEHOLDER_CHECKSUM = "dummy-checksum"
_CHANGES = (FileEventType.CREATE, FileEventType.MODIFY)


class FileIndexer:
    """Adds stat information and checksums to watcher events."""

    def __init__(self, event_bus: EventBus) -> None:
        self.event_bus = event_bus

    def start(self) -> None:
        """Listen for watcher events."""
        self.event_bus.subscribe(Topic.WATCHER_EVENT, self.handle_event)

    def handle_event(self, event: Any) -> Optional[FileIndexerEvent]:
        """Index one watcher event and publish the result.

        Returns the published event, or None when nothing was published.
        """
        if not isinstance(event, FileWatcherEvent):
            log.error("Received unknown event type in FileWatcherEvent: %r", event)
            return None

        log.info(
            "Processing FileWatcherEvent: %s for file: %s",
            event.event_type,
            event.source_file_path,
        )
        indexed = FileIndexerEvent(
            event_uuid=event.event_uuid,
            event_type=event.event_type,
            source_file=FileDetails(file_path=event.source_file_path),
            dest_file=FileDetails(file_path=event.dest_file_path),
        )

        if event.event_type in _CHANGES:
            try:
                indexed.source_file.file_info = os.stat(event.source_file_path)
            except OSError as exc:
                log.error(
                    "Failed to get file info for %s: %s", event.source_file_path, exc
                )
                return None
            try:
                indexed.dest_file.file_info = os.stat(event.dest_file_path)
            except OSError as exc:
                log.info("Failed to get file info for %s: %s", event.dest_file_path, exc)
            indexed.source_file.checksum = _PLACEHOLDER_CHECKSUM
            indexed.dest_file.checksum = _PLACEHOLDER_CHECKSUM

        log.info("FileIndexerEvent created: %s", indexed)
        self.event_bus.publish(Topic.INDEXER_EVENT, indexed)
        return indexed


class FileDifferentiator:
    """Compares both copies of a file and decides what to do."""

    def __init__(self, event_bus: EventBus) -> None:
        self.event_bus = event_bus

    def start(self) -> None:
        """Listen for indexer events."""
        self.event_bus.subscribe(Topic.INDEXER_EVENT, self.handle_event)

    def handle_event(self, event: Any) -> Optional[FileDifferentiatorEvent]:
        """Decide the action for one indexed event and publish it.

        Returns the published event, or None for an unknown event.
        """
        if not isinstance(event, FileIndexerEvent):
            log.error("Received unknown event type in FileIndexerEvent: %r", event)
            return None

        source, dest = event.source_file, event.dest_file
        log.info(
            "Processing FileindexerEvent: %s for file: %s",
            event.event_type,
            source.file_path,
        )
        decided = FileDifferentiatorEvent(
            event_uuid=event.event_uuid,
            source_file_path=source.file_path,
            dest_file_path=dest.file_path,
            source_file_info=source.file_info,
            dest_file_info=dest.file_info,
        )

        if event.event_type in _CHANGES:
            if source.file_info != dest.file_info or source.checksum != dest.checksum:
                decided.action_type = ActionType.UPLOAD
        elif event.event_type == FileEventType.DELETE:
            decided.action_type = ActionType.DELETE

        log.info("FileDifferentiatorEvent created: %s", decided)
        self.event_bus.publish(Topic.DIFFERENTIATOR_EVENT, decided)
        return decided


class FileSyncer:
    """Turns decided actions into tasks run by a worker pool."""

    def __init__(self, worker_count: int, event_bus: EventBus) -> None:
        self.event_bus = event_bus
        self.task_manager = TaskManager(worker_count, event_bus)

    def start(self) -> None:
        """Listen for differentiator events and start the workers."""
        self.event_bus.subscribe(Topic.DIFFERENTIATOR_EVENT, self.handle_event)
        self.task_manager.start()

    def stop(self) -> None:
        """Stop the workers."""
        self.task_manager.stop()

    def handle_event(self, event: Any) -> Optional[Task]:
        """Submit the task for one decided action.

        Returns the submitted task, or None when the action needs no work.
        """
        if not isinstance(event, FileDifferentiatorEvent):
            log.error("Received unknown event type in FileDifferentiator: %r", event)
            return None

        log.info(
            "Processing FileDifferentiatorEvent: %s for file: %s",
            event.action_type,
            event.source_file_path,
        )
        sync_task = SyncTask(
            event_uuid=event.event_uuid,
            action=event.action_type,
            source_path=event.source_file_path,
            dest_path=event.dest_file_path,
            file_info=event.source_file_info,
        )
        task = create_task(event.action_type, sync_task)
        self.task_manager.submit(task)
        log.info("SyncTask submitted for processing: %s", sync_task)
        return task


class ProgressTracker:
    """Reports progress events of running and finished transfers."""

    def __init__(self, event_bus: EventBus) -> None:
        self.event_bus = event_bus

    def start(self) -> None:
        """Listen for progress events."""
        self.event_bus.subscribe(Topic.PROGRESS_TRACKER_EVENT, self.handle_event)

    def handle_event(self, event: Any) -> None:
        """Log one progress event."""
        if not isinstance(event, ProgressTrackerEvent):
            log.error("Received unknown event type in ProgressTrackerEvent: %r", event)
            return
        log.info(
            "Processing ProgressTrackerEvent: %s for file: %s", event, event.file_name
        )