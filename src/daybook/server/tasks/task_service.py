import logging

from datetime import UTC, datetime

from daybook.server.store.kv_store import KeyValueStore
from daybook.server.tasks.group_index import GroupIndex
from daybook.types import Task, TaskList
from daybook.utils.codec import decode_task, decode_wire, encode_task
from daybook.utils.errors import DecodeError, EncodeError, UnknownGroupError
from daybook.utils.keys import KeyScheme, MonotonicStamp
from daybook.utils.telemetry import SpanKind, trace_class


logger = logging.getLogger(__name__)


@trace_class(kind=SpanKind.SERVER)
class TaskService:
    """Appends tasks to groups and lists each group's tasks in creation order.

    Tasks are stored under keys built by the `KeyScheme`, so a prefix scan
    over a group returns its tasks already ordered; no secondary index is
    kept. Errors from the codec and the store propagate to the caller
    unchanged.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key_scheme: KeyScheme,
        stamp: MonotonicStamp | None = None,
    ) -> None:
        """Initializes the TaskService.

        Args:
            store: The ordered key-value store holding the tasks.
            key_scheme: The key scheme covering the known groups. The
              group index is built from it, so writes and reads share one
              group to prefix mapping.
            stamp: Source of key disambiguators. A fresh `MonotonicStamp`
              when omitted.
        """
        self.store = store
        self.key_scheme = key_scheme
        self.group_index = GroupIndex(store, key_scheme)
        self._stamp = stamp if stamp is not None else MonotonicStamp()

    @property
    def groups(self) -> list[str]:
        return self.key_scheme.groups

    async def append(self, group: str, task: Task) -> Task:
        """Persists `task` as a new member of `group`.

        The task is stamped with the current time unless it already carries
        a ``createdAt``. Appending the same task twice stores two tasks.

        Args:
            group: A known group identifier.
            task: The task to persist. Its ``group`` field is overwritten
              with `group`.

        Returns:
            The task as persisted.

        Raises:
            UnknownGroupError: If `group` is not a known group.
            EncodeError: If the task cannot be serialized or keyed.
            StoreError: If the store fails to write.
        """
        if group not in self.key_scheme:
            raise UnknownGroupError(group)

        stored = task.model_copy(
            update={
                'group': group,
                'createdAt': task.createdAt or datetime.now(UTC),
            }
        )
        payload = encode_task(stored)
        try:
            key = self.key_scheme.make_key(
                group, stored.createdAt, self._stamp.next()
            )
        except ValueError as e:
            raise EncodeError(str(e)) from e

        await self.store.put(key, payload)
        logger.info(f'Appended task to {group}: {stored.description!r}')
        return stored

    async def append_payload(self, group: str, payload: bytes) -> Task:
        """Decodes an inbound JSON payload and appends it to `group`.

        Raises:
            UnknownGroupError: If `group` is not a known group.
            DecodeError: If the payload does not hold a valid task.
        """
        if group not in self.key_scheme:
            raise UnknownGroupError(group)
        task = decode_wire(payload)
        if task.group and task.group != group:
            logger.debug(
                f"Payload names group '{task.group}', storing under '{group}'"
            )
        return await self.append(group, task)

    async def get_group_count(self, group: str) -> int:
        """Returns the number of tasks stored for `group`."""
        return await self.group_index[group].count()

    async def list(self, group: str) -> TaskList:
        """Returns the descriptions of every task in `group`, oldest first.

        Raises:
            UnknownGroupError: If `group` is not a known group.
            DecodeError: If any stored record cannot be decoded. No partial
              list is returned.
            StoreError: If the store fails to read.
        """
        items = await self.group_index[group].items()
        task_list = TaskList(group=group)
        for item in items:
            try:
                task = decode_task(item.value, key=item.key)
                if task.group != group:
                    raise DecodeError(
                        f"Record belongs to group '{task.group}', not '{group}'",
                        key=item.key,
                    )
            except DecodeError as e:
                logger.error(
                    f'Aborting list of {group}: corrupt record '
                    f'{self._describe_key(item.key)}: {e.message}'
                )
                raise
            task_list.tasks.append(task.description)
        logger.debug(f'Listed {len(task_list.tasks)} task(s) for {group}')
        return task_list

    def _describe_key(self, key: bytes) -> str:
        try:
            group, created_at, stamp = self.key_scheme.split_key(key)
        except ValueError:
            return repr(key)
        return f'{group}@{created_at.isoformat()}#{stamp}'
