from dashboard.models.watcher import ChangeEvent, Watcher

__all__ = [
    "Watcher",
    "ChangeEvent",
]
