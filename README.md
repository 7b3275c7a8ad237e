# syncbus

`syncbus` mirrors a local directory into a second directory. It watches the
local directory, and each time a file in it changes, the change goes through a
chain of stages joined by an in-process publish/subscribe bus
(`syncbus.eventbus.EventBus`):

1. **FileWatcher** (`syncbus.watcher`) picks up create, modify and delete
   events and publishes a `FileWatcherEvent`.
2. **FileIndexer** (`syncbus.pipeline`) adds `os.stat` results for the source
   and the destination file.
3. **FileDifferentiator** decides on an action: `UPLOAD` when a file was
   created or modified and the two copies differ, `DELETE` when it was removed.
4. **FileSyncer** turns the action into an `UploadTask` or `DeleteTask`
   (`syncbus.tasks`) and hands it to a pool of worker threads through
   `TaskManager` / `WorkerPool`.
5. **ProgressTracker** logs a `ProgressTrackerEvent` for each finished task.

The event records passed between the stages are dataclasses in
`syncbus.models`.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Running

```
syncbus [--local DIR] [--remote DIR]
```

By default the command watches `./local-filesystem` and copies changes into
`./remote-filesystem`. The local directory must already exist; if it does not,
the command logs the error and exits with status 1. The remote directory is
created when the first file is copied into it. Logging goes to standard output
at debug level. Press Ctrl+C, or send SIGTERM, to stop it cleanly; it then
exits with status 0.

## Using it as a library

```python
from syncbus.service import SynchronizerService

service = SynchronizerService("./local-filesystem", "./remote-filesystem")
service.start()
try:
    ...  # do other work while files are mirrored
finally:
    service.stop()
```

`SynchronizerService` takes an optional `worker_count` (default 5).

The pieces also work on their own:

```python
from syncbus.eventbus import EventBus, Topic

bus = EventBus()
bus.subscribe(Topic.PROGRESS_TRACKER_EVENT, print)
bus.publish(Topic.PROGRESS_TRACKER_EVENT, "hello")  # returns 1
bus.close()
```

Each subscriber has its own bounded queue of 100 events, read by its own
thread. If a subscriber falls behind and its queue is full, further events for
it are dropped and a warning is logged for each one. `publish` returns the
number of subscribers the event was queued for. An exception raised by a
handler is logged and does not stop delivery.

`WorkerPool.wait()` blocks until every submitted task has run, shuts the pool
and returns the exceptions raised by failed tasks.

## What it does not do

- The "remote" directory is just another local path; nothing is sent over a
  network.
- Only one direction: changes in the local directory are copied to the remote
  one, never back. `ActionType.DOWNLOAD` exists but no task carries it out.
- Only the top level of the local directory is watched, and every file is
  copied to `<remote>/<file name>`.
- Files are compared by their `os.stat` results only; the checksum is a fixed
  placeholder.
- A renamed file is copied under its new name, but the copy under the old name
  is not removed.
- No initial scan: files already present when the service starts are not
  copied until they change.