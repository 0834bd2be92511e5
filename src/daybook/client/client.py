import json
import logging

from datetime import UTC, datetime
from typing import Any

import httpx

from pydantic import ValidationError

from daybook.client.errors import DaybookClientHTTPError, DaybookClientJSONError
from daybook.types import GroupListing, Task, TaskList
from daybook.utils.telemetry import SpanKind, trace_class


logger = logging.getLogger(__name__)


@trace_class(kind=SpanKind.CLIENT)
class DaybookClient:
    """Client for posting tasks to and listing tasks from a daybook server."""

    def __init__(self, httpx_client: httpx.AsyncClient, base_url: str):
        """Initializes the DaybookClient.

        Args:
            httpx_client: An async HTTP client instance (e.g., httpx.AsyncClient).
            base_url: The base URL of the daybook server.
        """
        self.base_url = base_url.rstrip('/')
        self.httpx_client = httpx_client

    async def post(
        self,
        group: str,
        task: Task | str,
        *,
        http_kwargs: dict[str, Any] | None = None,
    ) -> Task:
        """Posts a task to `group`, stamping its creation time if unset.

        Args:
            group: The group to append the task to.
            task: The task, or just its description.
            http_kwargs: Optional keyword arguments for ``httpx.post``.

        Returns:
            The task as stored by the server.

        Raises:
            DaybookClientHTTPError: If an HTTP error occurs during the request.
            DaybookClientJSONError: If the response cannot be parsed.
        """
        if isinstance(task, str):
            task = Task(description=task, group=group)
        if task.createdAt is None:
            task = task.model_copy(update={'createdAt': datetime.now(UTC)})
        response = await self._send(
            'POST',
            f'{self.base_url}/{group}',
            content=task.model_dump_json(exclude_none=True),
            headers={'Content-Type': 'application/json'},
            **(http_kwargs or {}),
        )
        logger.debug(f'Posted task to {group}: {response.status_code}')
        return self._parse(Task, response)

    async def get(
        self, group: str, *, http_kwargs: dict[str, Any] | None = None
    ) -> TaskList:
        """Fetches the task list of `group`.

        Raises:
            DaybookClientHTTPError: If an HTTP error occurs during the request.
            DaybookClientJSONError: If the response cannot be parsed.
        """
        response = await self._send(
            'GET', f'{self.base_url}/{group}', **(http_kwargs or {})
        )
        return self._parse(TaskList, response)

    async def get_groups(
        self, *, http_kwargs: dict[str, Any] | None = None
    ) -> list[str]:
        """Fetches the groups the server accepts."""
        response = await self._send(
            'GET', f'{self.base_url}/', **(http_kwargs or {})
        )
        return self._parse(GroupListing, response).groups

    @staticmethod
    def render(task_list: TaskList) -> str:
        """Joins a task list's descriptions with commas."""
        return ', '.join(task_list.tasks)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.httpx_client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            raise DaybookClientHTTPError.from_response(e.response) from e
        except httpx.RequestError as e:
            raise DaybookClientHTTPError(
                503, f'Network communication error: {e}'
            ) from e

    @staticmethod
    def _parse(model, response: httpx.Response):
        try:
            return model.model_validate(response.json())
        except json.JSONDecodeError as e:
            raise DaybookClientJSONError(str(e)) from e
        except ValidationError as e:
            raise DaybookClientJSONError(str(e)) from e
