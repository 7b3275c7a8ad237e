"""Sync tasks and the worker pool that runs them."""

from __future__ import annotations

import logging
import os
import queue
import shutil
import threading
from abc import ABC, abstractmethod
from typing import Optional

from syncbus.eventbus import EventBus, Topic
from syncbus.models import ActionType, ProgressStatus, ProgressTrackerEvent, SyncTask

log = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_STOP = object()


class Task(ABC):
    """One unit of synchronization work."""

    def __init__(self, sync_task: SyncTask) -> None:
        self.sync_task = sync_task

    @abstractmethod
    def execute(self, cancelled: threading.Event, event_bus: EventBus) -> None:
        """Carry out the task, raising on failure."""


class UploadTask(Task):
    """Copies the source file to the destination path."""

    def execute(self, cancelled: threading.Event, event_bus: EventBus) -> None:
        opt = self.sync_task
        log.info("Starting upload task for file: %s", opt.source_path)

        with open(opt.source_path, "rb") as source:
            parent = os.path.dirname(opt.dest_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(opt.dest_path, "wb") as dest:
                bytes_done = 0
                for chunk in iter(lambda: source.read(_CHUNK_SIZE), b""):
                    dest.write(chunk)
                    bytes_done += len(chunk)

        total_size = opt.file_info.st_size if opt.file_info is not None else 0
        event_bus.publish(
            Topic.PROGRESS_TRACKER_EVENT,
            ProgressTrackerEvent(
                event_uuid=opt.event_uuid,
                file_name=opt.dest_path,
                status=ProgressStatus.COMPLETED,
                total_size=total_size,
                bytes_done=bytes_done,
            ),
        )


class DeleteTask(Task):
    """Removes the destination path and anything below it."""

    def execute(self, cancelled: threading.Event, event_bus: EventBus) -> None:
        opt = self.sync_task
        log.info("Starting delete task for file: %s", opt.dest_path)

        try:
            _remove_all(opt.dest_path)
        except OSError as exc:
            raise OSError(f"failed to delete path {opt.dest_path}: {exc}") from exc

        event_bus.publish(
            Topic.PROGRESS_TRACKER_EVENT,
            ProgressTrackerEvent(
                event_uuid=opt.event_uuid,
                file_name=opt.dest_path,
                status=ProgressStatus.COMPLETED,
            ),
        )


def _remove_all(path: str) -> None:
    """Remove a file or directory tree; a missing path is not an error."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)


def create_task(action: Optional[ActionType], sync_task: SyncTask) -> Optional[Task]:
    """Build the task for an action, or None when the action needs no work."""
    if action == ActionType.UPLOAD:
        return UploadTask(sync_task)
    if action == ActionType.DELETE:
        return DeleteTask(sync_task)
    return None


class WorkerPool:
    """A fixed number of threads executing submitted tasks."""

    def __init__(self, worker_count: int, event_bus: EventBus) -> None:
        self.worker_count = worker_count
        self._event_bus = event_bus
        self._queue: queue.Queue = queue.Queue()
        self._cancelled = threading.Event()
        self._cond = threading.Condition()
        self._pending = 0
        self._errors: list[Exception] = []
        self._closed = False

    def submit(self, task: Task) -> None:
        """Queue a task for a worker; raises RuntimeError once the pool is shut."""
        with self._cond:
            if self._closed:
                raise RuntimeError("worker pool is stopped")
            self._pending += 1
        self._queue.put(task)

    def start(self) -> None:
        """Start the worker threads."""
        for number in range(self.worker_count):
            threading.Thread(
                target=self._worker, name=f"sync-worker-{number}", daemon=True
            ).start()

    def wait(self) -> list[Exception]:
        """Block until every submitted task ran, then shut the pool.

        Returns the exceptions raised by failed tasks.
        """
        with self._cond:
            while self._pending:
                self._cond.wait()
        self._shutdown()
        with self._cond:
            return list(self._errors)

    def stop(self) -> None:
        """Shut the pool; tasks still queued are not run."""
        self._shutdown()

    def _shutdown(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._closed = True
        self._cancelled.set()
        for _ in range(self.worker_count):
            self._queue.put(_STOP)

    def _worker(self) -> None:
        while True:
            task = self._queue.get()
            if task is _STOP or self._cancelled.is_set():
                return
            try:
                task.execute(self._cancelled, self._event_bus)
            except Exception as exc:
                log.error("Task failed: %s", exc)
                with self._cond:
                    self._errors.append(exc)
            finally:
                with self._cond:
                    self._pending -= 1
                    self._cond.notify_all()


class TaskManager:
    """Front door to the worker pool."""

    def __init__(self, worker_count: int, event_bus: EventBus) -> None:
        self.worker_pool = WorkerPool(worker_count, event_bus)

    def start(self) -> None:
        """Start the workers."""
        self.worker_pool.start()

    def submit(self, task: Optional[Task]) -> None:
        """Hand a task to the pool; None is ignored."""
        if task is None:
            return
        self.worker_pool.submit(task)

    def stop(self) -> None:
        """Stop the workers."""
        self.worker_pool.stop()