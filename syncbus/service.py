"""The synchronizer service wiring all components together, and its command."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

from syncbus.eventbus import EventBus
from syncbus.pipeline import FileDifferentiator, FileIndexer, FileSyncer, ProgressTracker
from syncbus.watcher import FileWatcher

log = logging.getLogger(__name__)

WORKER_COUNT = 5


class SynchronizerService:
    """Mirrors changes in a local directory into a remote directory."""

    def __init__(
        self, local_dir: str, remote_dir: str, worker_count: int = WORKER_COUNT
    ) -> None:
        self.event_bus = EventBus()
        log.info("Creating event bus for Synchronizer Service...")
        self.watcher = FileWatcher(local_dir, remote_dir, self.event_bus)
        log.info(
            "File watcher created for local directory: %s and remote directory: %s",
            local_dir,
            remote_dir,
        )
        self.indexer = FileIndexer(self.event_bus)
        self.differentiator = FileDifferentiator(self.event_bus)
        self.syncer = FileSyncer(worker_count, self.event_bus)
        self.progress_tracker = ProgressTracker(self.event_bus)

    def start(self) -> None:
        """Start watching and processing changes."""
        log.info("Starting Synchronizer Service...")
        self.watcher.start()
        self.indexer.start()
        self.differentiator.start()
        self.syncer.start()
        self.progress_tracker.start()
        log.info("Synchronizer Service started successfully.")

    def stop(self) -> None:
        """Close the event bus and stop watching."""
        log.info("Stopping Synchronizer Service...")
        self.event_bus.close()
        self.watcher.stop()
        self.syncer.stop()
        log.info("Synchronizer Service stopped.")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="syncbus", description="Mirror a local directory into a remote one."
    )
    parser.add_argument("--local", default="./local-filesystem", help="directory to watch")
    parser.add_argument("--remote", default="./remote-filesystem", help="mirror directory")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the synchronizer until SIGINT or SIGTERM arrives."""
    args = _parse_args(argv)
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        service = SynchronizerService(args.local, args.remote)
        service.start()
    except OSError as exc:
        log.critical("Failed to start synchronizer: %s", exc)
        return 1

    received: list[int] = []
    stop = threading.Event()

    def _on_signal(signum: int, _frame: object) -> None:
        received.append(signum)
        stop.set()

    previous = {
        sig: signal.signal(sig, _on_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        while not stop.wait(0.5):
            pass
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    log.info("Received signal: %s. Shutting down...", signal.Signals(received[0]).name)
    service.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())