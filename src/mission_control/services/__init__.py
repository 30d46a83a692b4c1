"""Board services built on top of a ``Database``."""

from mission_control.services.board import BoardQueries
from mission_control.services.directory import DirectoryService
from mission_control.services.notifications import NotificationStore
from mission_control.services.tasks import TaskService

__all__ = [
    "BoardQueries",
    "DirectoryService",
    "NotificationStore",
    "TaskService",
]
