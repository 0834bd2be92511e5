import logging

from typing import Any

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from daybook.server.tasks.task_service import TaskService
from daybook.types import GroupListing
from daybook.utils.errors import (
    DaybookError,
    DecodeError,
    EncodeError,
    StoreError,
    UnknownGroupError,
)


logger = logging.getLogger(__name__)


def error_status(error: DaybookError) -> int:
    """Maps a daybook error onto an HTTP status code.

    A `DecodeError` carrying a store key comes from a corrupt stored record
    and is a server fault; without a key it was caused by the request body.
    """
    match error:
        case UnknownGroupError():
            return 404
        case DecodeError(key=None):
            return 400
        case DecodeError():
            return 500
        case EncodeError():
            return 422
        case StoreError():
            return 503
        case _:
            return 500


class DaybookStarletteApplication:
    """A Starlette application serving a `TaskService` over HTTP.

    ``POST /{group}`` appends the JSON task in the body to the group and
    ``GET /{group}`` returns the group's task list. ``GET /`` lists the
    groups the service accepts.
    """

    def __init__(self, task_service: TaskService):
        """Initializes the DaybookStarletteApplication.

        Args:
            task_service: The service handling every request.
        """
        self.task_service = task_service

    def _generate_error_response(self, error: DaybookError) -> JSONResponse:
        """Creates a JSONResponse for a daybook error, logging it by severity."""
        status_code = error_status(error)
        log_level = logging.ERROR if status_code >= 500 else logging.WARNING
        logger.log(
            log_level,
            f'Request Error: Status={status_code}, '
            f"Type={type(error).__name__}, Message='{error}'",
        )
        return JSONResponse(
            {
                'error': {
                    'code': type(error).__name__,
                    'message': getattr(error, 'message', str(error)),
                }
            },
            status_code=status_code,
        )

    async def _handle_get_groups(self, request: Request) -> JSONResponse:
        listing = GroupListing(groups=self.task_service.groups)
        return JSONResponse(listing.model_dump(mode='json'))

    async def _handle_get_tasks(self, request: Request) -> JSONResponse:
        """Handles GET requests returning one group's task list."""
        group = request.path_params['group']
        try:
            task_list = await self.task_service.list(group)
        except DaybookError as e:
            return self._generate_error_response(e)
        return JSONResponse(task_list.model_dump(mode='json'))

    async def _handle_post_task(self, request: Request) -> JSONResponse:
        """Handles POST requests appending the task in the body to a group."""
        group = request.path_params['group']
        body = await request.body()
        try:
            task = await self.task_service.append_payload(group, body)
        except DaybookError as e:
            return self._generate_error_response(e)
        return JSONResponse(
            task.model_dump(mode='json', exclude_none=True), status_code=201
        )

    def routes(self, prefix: str = '') -> list[Route]:
        """Returns the Starlette Routes serving the task service.

        Args:
            prefix: A path prefix mounted in front of every route.
        """
        return [
            Route(
                f'{prefix}/',
                self._handle_get_groups,
                methods=['GET'],
                name='groups',
            ),
            Route(
                f'{prefix}/{{group}}',
                self._handle_get_tasks,
                methods=['GET'],
                name='get_tasks',
            ),
            Route(
                f'{prefix}/{{group}}',
                self._handle_post_task,
                methods=['POST'],
                name='post_task',
            ),
        ]

    def build(self, prefix: str = '', **kwargs: Any) -> Starlette:
        """Builds and returns the Starlette application instance.

        Args:
            prefix: A path prefix mounted in front of every route.
            **kwargs: Additional keyword arguments to pass to the Starlette
              constructor.
        """
        app_routes = self.routes(prefix)
        if 'routes' in kwargs:
            kwargs['routes'].extend(app_routes)
        else:
            kwargs['routes'] = app_routes

        return Starlette(**kwargs)
