"""Components for storing and listing grouped tasks."""

from daybook.server.tasks.group_index import GroupIndex, PrefixScanner
from daybook.server.tasks.task_service import TaskService


__all__ = [
    'GroupIndex',
    'PrefixScanner',
    'TaskService',
]
