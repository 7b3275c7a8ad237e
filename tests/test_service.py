import time

import pytest

from syncbus.eventbus import Topic
from syncbus.models import FileEventType, FileWatcherEvent
from syncbus.service import WORKER_COUNT, SynchronizerService, main


@pytest.fixture
def dirs(tmp_path):
    local = tmp_path / "local"
    local.mkdir()
    return local, tmp_path / "remote"


def test_missing_local_dir_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        SynchronizerService(str(tmp_path / "absent"), str(tmp_path / "remote"))


def test_default_worker_count(dirs):
    local, remote = dirs
    service = SynchronizerService(str(local), str(remote))
    assert service.syncer.task_manager.worker_pool.worker_count == WORKER_COUNT == 5


def test_service_mirrors_new_file(dirs):
    local, remote = dirs
    service = SynchronizerService(str(local), str(remote))
    service.start()
    try:
        (local / "doc.txt").write_bytes(b"mirrored content")
        target = remote / "doc.txt"
        deadline = time.monotonic() + 10
        while time.monotonic() < deadline:
            if target.exists() and target.read_bytes() == b"mirrored content":
                break
            time.sleep(0.1)
    finally:
        service.stop()

    assert target.read_bytes() == b"mirrored content"


def test_stop_closes_event_bus(dirs):
    local, remote = dirs
    service = SynchronizerService(str(local), str(remote))
    service.start()
    service.stop()

    event = FileWatcherEvent(
        event_uuid="x",
        source_file_path=str(local / "a"),
        dest_file_path=str(remote / "a"),
        event_type=FileEventType.CREATE,
    )
    assert service.event_bus.publish(Topic.WATCHER_EVENT, event) == 0


def test_main_fails_for_missing_local_dir(tmp_path):
    code = main(["--local", str(tmp_path / "absent"), "--remote", str(tmp_path / "r")])
    assert code == 1