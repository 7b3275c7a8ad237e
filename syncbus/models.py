"""Events and records passed between the synchronizer components."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value


class ActionType(_StrEnum):
    """What must happen to the destination copy of a file."""

    UPLOAD = "UPLOAD"
    DOWNLOAD = "DOWNLOAD"
    DELETE = "DELETE"


class FileEventType(_StrEnum):
    """Kind of change seen on a watched file."""

    CREATE = "CREATE"
    MODIFY = "MODIFY"
    DELETE = "DELETE"


class ProgressStatus(_StrEnum):
    """State of a transfer reported to the progress tracker."""

    IN_PROGRESS = "INPROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


@dataclass
class FileWatcherEvent:
    """A raw change on a watched file and where it should be mirrored."""

    event_uuid: str
    source_file_path: str
    dest_file_path: str
    event_type: Optional[FileEventType] = None
    is_renamed: bool = False
    renamed_file_name: str = ""


@dataclass
class FileDetails:
    """A file path with its stat result and checksum, when known."""

    file_path: str
    file_info: Optional[os.stat_result] = None
    checksum: str = ""


@dataclass
class FileIndexerEvent:
    """A watcher event enriched with details of both file copies."""

    event_uuid: str
    event_type: Optional[FileEventType]
    source_file: FileDetails
    dest_file: FileDetails


@dataclass
class FileDifferentiatorEvent:
    """The action decided for a file after comparing its two copies."""

    event_uuid: str
    source_file_path: str
    dest_file_path: str
    action_type: Optional[ActionType] = None
    source_file_info: Optional[os.stat_result] = None
    dest_file_info: Optional[os.stat_result] = None


@dataclass
class SyncTask:
    """Everything a worker needs to carry out one action."""

    event_uuid: str
    action: Optional[ActionType]
    source_path: str
    dest_path: str
    file_info: Optional[os.stat_result] = None


@dataclass
class ProgressTrackerEvent:
    """Progress of a transfer on one file."""

    event_uuid: str
    file_name: str
    status: ProgressStatus
    total_size: int = 0
    bytes_done: int = 0
    error: str = field(default="")