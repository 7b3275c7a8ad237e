import logging
import os
import queue

import pytest

from syncbus.eventbus import EventBus, Topic
from syncbus.models import (
    ActionType,
    FileDetails,
    FileDifferentiatorEvent,
    FileEventType,
    FileIndexerEvent,
    FileWatcherEvent,
    ProgressStatus,
    ProgressTrackerEvent,
)
from syncbus.pipeline import FileDifferentiator, FileIndexer, FileSyncer, ProgressTracker
from syncbus.tasks import DeleteTask, UploadTask


@pytest.fixture
def bus():
    event_bus = EventBus()
    yield event_bus
    event_bus.close()


def _collect(bus, topic):
    received = queue.Queue()
    bus.subscribe(topic, received.put)
    return received


def _watcher_event(tmp_path, event_type, name="a.txt"):
    return FileWatcherEvent(
        event_uuid="id-1",
        source_file_path=str(tmp_path / "local" / name),
        dest_file_path=str(tmp_path / "remote" / name),
        event_type=event_type,
    )


@pytest.fixture
def dirs(tmp_path):
    (tmp_path / "local").mkdir()
    (tmp_path / "remote").mkdir()
    return tmp_path


def test_indexer_create_stats_source_and_marks_missing_dest(bus, dirs):
    source = dirs / "local" / "a.txt"
    source.write_bytes(b"hello")
    published = _collect(bus, Topic.INDEXER_EVENT)

    result = FileIndexer(bus).handle_event(_watcher_event(dirs, FileEventType.CREATE))

    assert result.source_file.file_info.st_size == 5
    assert result.dest_file.file_info is None
    assert result.source_file.checksum == "dummy-checksum"
    assert result.dest_file.checksum == "dummy-checksum"
    assert result.event_uuid == "id-1"
    assert published.get(timeout=5) == result


def test_indexer_stats_existing_dest(bus, dirs):
    (dirs / "local" / "a.txt").write_bytes(b"hello")
    (dirs / "remote" / "a.txt").write_bytes(b"hi")

    result = FileIndexer(bus).handle_event(_watcher_event(dirs, FileEventType.MODIFY))

    assert result.dest_file.file_info.st_size == 2
    assert result.event_type == FileEventType.MODIFY


def test_indexer_missing_source_publishes_nothing(bus, dirs):
    published = _collect(bus, Topic.INDEXER_EVENT)

    result = FileIndexer(bus).handle_event(_watcher_event(dirs, FileEventType.CREATE))

    assert result is None
    with pytest.raises(queue.Empty):
        published.get(timeout=0.3)


def test_indexer_delete_skips_stat(bus, dirs):
    result = FileIndexer(bus).handle_event(_watcher_event(dirs, FileEventType.DELETE))

    assert result.source_file.file_info is None
    assert result.source_file.checksum == ""
    assert result.dest_file.file_path == str(dirs / "remote" / "a.txt")


def test_indexer_rejects_unknown_event(bus):
    assert FileIndexer(bus).handle_event("not an event") is None


def test_differentiator_uploads_when_dest_missing(bus, dirs):
    source = dirs / "local" / "a.txt"
    source.write_bytes(b"data")
    published = _collect(bus, Topic.DIFFERENTIATOR_EVENT)
    indexed = FileIndexerEvent(
        event_uuid="id-2",
        event_type=FileEventType.CREATE,
        source_file=FileDetails(str(source), os.stat(source), "dummy-checksum"),
        dest_file=FileDetails(str(dirs / "remote" / "a.txt"), None, "dummy-checksum"),
    )

    result = FileDifferentiator(bus).handle_event(indexed)

    assert result.action_type == ActionType.UPLOAD
    assert result.source_file_path == str(source)
    assert published.get(timeout=5) == result


def test_differentiator_no_action_for_identical_copies(bus, dirs):
    source = dirs / "local" / "a.txt"
    source.write_bytes(b"data")
    info = os.stat(source)
    indexed = FileIndexerEvent(
        event_uuid="id-3",
        event_type=FileEventType.MODIFY,
        source_file=FileDetails(str(source), info, "sum"),
        dest_file=FileDetails(str(source), info, "sum"),
    )

    result = FileDifferentiator(bus).handle_event(indexed)

    assert result.action_type is None


def test_differentiator_uploads_on_checksum_difference(bus, dirs):
    source = dirs / "local" / "a.txt"
    source.write_bytes(b"data")
    info = os.stat(source)
    indexed = FileIndexerEvent(
        event_uuid="id-4",
        event_type=FileEventType.MODIFY,
        source_file=FileDetails(str(source), info, "one"),
        dest_file=FileDetails(str(source), info, "two"),
    )

    assert FileDifferentiator(bus).handle_event(indexed).action_type == ActionType.UPLOAD


def test_differentiator_delete(bus, dirs):
    indexed = FileIndexerEvent(
        event_uuid="id-5",
        event_type=FileEventType.DELETE,
        source_file=FileDetails(str(dirs / "local" / "a.txt")),
        dest_file=FileDetails(str(dirs / "remote" / "a.txt")),
    )

    assert FileDifferentiator(bus).handle_event(indexed).action_type == ActionType.DELETE


def test_differentiator_rejects_unknown_event(bus):
    assert FileDifferentiator(bus).handle_event(42) is None


def test_syncer_builds_tasks_by_action(bus, dirs):
    syncer = FileSyncer(1, bus)
    upload = FileDifferentiatorEvent(
        event_uuid="u",
        source_file_path="s",
        dest_file_path="d",
        action_type=ActionType.UPLOAD,
    )
    delete = FileDifferentiatorEvent(
        event_uuid="d",
        source_file_path="s",
        dest_file_path="d",
        action_type=ActionType.DELETE,
    )
    nothing = FileDifferentiatorEvent(
        event_uuid="n", source_file_path="s", dest_file_path="d"
    )

    upload_task = syncer.handle_event(upload)
    assert isinstance(upload_task, UploadTask)
    assert upload_task.sync_task.dest_path == "d"
    assert isinstance(syncer.handle_event(delete), DeleteTask)
    assert syncer.handle_event(nothing) is None
    syncer.stop()


def test_syncer_runs_delete_task(bus, dirs):
    dest = dirs / "remote" / "a.txt"
    dest.write_bytes(b"old")
    progress = _collect(bus, Topic.PROGRESS_TRACKER_EVENT)
    syncer = FileSyncer(2, bus)
    syncer.start()
    try:
        bus.publish(
            Topic.DIFFERENTIATOR_EVENT,
            FileDifferentiatorEvent(
                event_uuid="del",
                source_file_path=str(dirs / "local" / "a.txt"),
                dest_file_path=str(dest),
                action_type=ActionType.DELETE,
            ),
        )
        event = progress.get(timeout=5)
    finally:
        syncer.stop()

    assert event.status == ProgressStatus.COMPLETED
    assert event.event_uuid == "del"
    assert not dest.exists()


def test_full_pipeline_copies_created_file(bus, dirs):
    source = dirs / "local" / "a.txt"
    source.write_bytes(b"payload")
    progress = _collect(bus, Topic.PROGRESS_TRACKER_EVENT)
    FileIndexer(bus).start()
    FileDifferentiator(bus).start()
    syncer = FileSyncer(2, bus)
    syncer.start()
    ProgressTracker(bus).start()
    try:
        bus.publish(Topic.WATCHER_EVENT, _watcher_event(dirs, FileEventType.CREATE))
        event = progress.get(timeout=5)
    finally:
        syncer.stop()

    assert event.bytes_done == len(b"payload")
    assert event.total_size == len(b"payload")
    assert (dirs / "remote" / "a.txt").read_bytes() == b"payload"


def test_progress_tracker_logs_file_name(bus, caplog):
    caplog.set_level(logging.INFO, logger="syncbus.pipeline")
    ProgressTracker(bus).handle_event(
        ProgressTrackerEvent(
            event_uuid="p", file_name="remote/done.txt", status=ProgressStatus.COMPLETED
        )
    )
    assert any("remote/done.txt" in r.getMessage() for r in caplog.records)


def test_progress_tracker_logs_error_for_unknown_event(bus, caplog):
    caplog.set_level(logging.INFO, logger="syncbus.pipeline")
    ProgressTracker(bus).handle_event(object())
    assert [r.levelno for r in caplog.records] == [logging.ERROR]