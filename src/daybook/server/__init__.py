from daybook.server.apps import DaybookStarletteApplication
from daybook.server.server import DaybookServer
from daybook.server.tasks import TaskService


__all__ = [
    'DaybookServer',
    'DaybookStarletteApplication',
    'TaskService',
]
