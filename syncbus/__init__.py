"""One-way directory mirroring over an in-process publish/subscribe bus and a worker pool."""

__version__ = "0.1.0"
__all__ = ["eventbus", "models", "tasks", "pipeline", "watcher", "service"]