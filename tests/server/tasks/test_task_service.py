import asyncio
import logging

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from daybook.server.store import InMemoryKeyValueStore
from daybook.server.tasks import GroupIndex, TaskService
from daybook.types import Task, TaskList
from daybook.utils.errors import (
    DecodeError,
    EncodeError,
    StoreError,
    UnknownGroupError,
)
from daybook.utils.keys import KeyScheme, MonotonicStamp


WEEK = ['mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun']
BASE_TIME = datetime(2024, 3, 4, 9, 30, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def service(store: InMemoryKeyValueStore) -> TaskService:
    return TaskService(store, KeyScheme(WEEK))


@pytest.mark.asyncio
async def test_list_returns_tasks_in_append_order(service: TaskService) -> None:
    for description in ['milk cows', 'feed cows', 'wash cows']:
        await service.append('mon', Task(description=description))

    assert await service.list('mon') == TaskList(
        group='mon', tasks=['milk cows', 'feed cows', 'wash cows']
    )


@pytest.mark.asyncio
async def test_list_of_empty_group_is_empty(service: TaskService) -> None:
    assert await service.list('wed') == TaskList(group='wed', tasks=[])


@pytest.mark.asyncio
async def test_groups_are_isolated(service: TaskService) -> None:
    await service.append('mon', Task(description='milk cows'))
    await service.append('tue', Task(description='wash laundry'))

    assert (await service.list('mon')).tasks == ['milk cows']
    assert (await service.list('tue')).tasks == ['wash laundry']


@pytest.mark.asyncio
async def test_append_stamps_group_and_creation_time(
    service: TaskService,
) -> None:
    before = datetime.now(UTC)
    stored = await service.append('fri', Task(description='kill time', group='x'))
    assert stored.group == 'fri'
    assert stored.createdAt is not None
    assert stored.createdAt >= before


@pytest.mark.asyncio
async def test_append_keeps_caller_supplied_time(service: TaskService) -> None:
    stored = await service.append(
        'sat', Task(description='have beer', createdAt=BASE_TIME)
    )
    assert stored.createdAt == BASE_TIME


@pytest.mark.asyncio
async def test_list_orders_by_creation_time(service: TaskService) -> None:
    await service.append(
        'sun', Task(description='pray quietly', createdAt=BASE_TIME)
    )
    await service.append(
        'sun',
        Task(description='take aspirin', createdAt=BASE_TIME - timedelta(hours=1)),
    )
    assert (await service.list('sun')).tasks == ['take aspirin', 'pray quietly']


@pytest.mark.asyncio
async def test_identical_timestamps_do_not_overwrite(
    store: InMemoryKeyValueStore,
) -> None:
    service = TaskService(
        store, KeyScheme(WEEK), stamp=MonotonicStamp(clock=lambda: 0)
    )
    for description in ['one', 'two', 'three']:
        await service.append(
            'mon', Task(description=description, createdAt=BASE_TIME)
        )
    assert (await service.list('mon')).tasks == ['one', 'two', 'three']
    assert await service.get_group_count('mon') == 3


@pytest.mark.asyncio
async def test_reappending_creates_a_second_task(service: TaskService) -> None:
    task = Task(description='join army', createdAt=BASE_TIME)
    await service.append('thu', task)
    await service.append('thu', task)
    assert (await service.list('thu')).tasks == ['join army', 'join army']


@pytest.mark.asyncio
async def test_concurrent_appends_are_all_kept(service: TaskService) -> None:
    descriptions = [f'task {i}' for i in range(25)]
    await asyncio.gather(
        *(
            service.append('tue', Task(description=d, createdAt=BASE_TIME))
            for d in descriptions
        )
    )
    assert sorted((await service.list('tue')).tasks) == sorted(descriptions)


@pytest.mark.asyncio
async def test_unknown_group_does_not_touch_store(
    service: TaskService, store: InMemoryKeyValueStore
) -> None:
    with pytest.raises(UnknownGroupError):
        await service.append('xyz', Task(description='nothing'))
    with pytest.raises(UnknownGroupError):
        await service.append_payload('xyz', b'{"description": "nothing"}')
    with pytest.raises(UnknownGroupError):
        await service.list('xyz')
    with pytest.raises(UnknownGroupError):
        await service.get_group_count('xyz')
    assert store.keys == []


@pytest.mark.asyncio
async def test_append_payload_uses_path_group(service: TaskService) -> None:
    stored = await service.append_payload(
        'mon', b'{"description": "milk cows", "group": "tue"}'
    )
    assert stored.group == 'mon'
    assert (await service.list('mon')).tasks == ['milk cows']
    assert (await service.list('tue')).tasks == []


@pytest.mark.asyncio
async def test_append_payload_rejects_malformed_body(
    service: TaskService, store: InMemoryKeyValueStore
) -> None:
    with pytest.raises(DecodeError):
        await service.append_payload('mon', b'{"nope": 1}')
    assert store.keys == []


@pytest.mark.asyncio
async def test_pre_epoch_time_is_an_encode_error(service: TaskService) -> None:
    with pytest.raises(EncodeError):
        await service.append(
            'mon',
            Task(description='too early', createdAt=datetime(1960, 1, 1, tzinfo=UTC)),
        )


@pytest.mark.asyncio
async def test_corrupt_record_aborts_whole_list(
    service: TaskService, store: InMemoryKeyValueStore
) -> None:
    await service.append('mon', Task(description='milk cows'))
    corrupt_key = service.key_scheme.make_key('mon', datetime.now(UTC), 2**63)
    await store.put(corrupt_key, b'\x01garbage')
    await service.append('mon', Task(description='wash cows'))

    with pytest.raises(DecodeError) as exc_info:
        await service.list('mon')
    assert exc_info.value.key == corrupt_key


@pytest.mark.asyncio
async def test_record_from_other_group_is_a_decode_error(
    service: TaskService, store: InMemoryKeyValueStore
) -> None:
    stored = await service.append('tue', Task(description='fold laundry'))
    tue_items = await store.scan(b'/tue/')
    misplaced_key = service.key_scheme.make_key('mon', stored.createdAt, 1)
    await store.put(misplaced_key, tue_items[0].value)

    with pytest.raises(DecodeError):
        await service.list('mon')


@pytest.mark.asyncio
async def test_store_errors_propagate_untouched() -> None:
    store = AsyncMock()
    store.put.side_effect = StoreError('disk full')
    store.scan.side_effect = StoreError('disk gone')
    service = TaskService(store, KeyScheme(WEEK))

    with pytest.raises(StoreError, match='disk full'):
        await service.append('mon', Task(description='milk cows'))
    with pytest.raises(StoreError, match='disk gone'):
        await service.list('mon')


def test_group_index_is_bound_to_write_path(
    service: TaskService, store: InMemoryKeyValueStore
) -> None:
    assert service.group_index.key_scheme is service.key_scheme
    for group in WEEK:
        scanner = service.group_index[group]
        assert scanner.store is store
        assert scanner.prefix == service.key_scheme.group_prefix(group)


def test_group_index_cannot_be_injected(store: InMemoryKeyValueStore) -> None:
    key_scheme = KeyScheme(WEEK)
    with pytest.raises(TypeError):
        TaskService(
            store,
            key_scheme,
            group_index=GroupIndex(InMemoryKeyValueStore(), key_scheme),
        )


@pytest.mark.asyncio
async def test_service_without_groups_rejects_every_group(
    store: InMemoryKeyValueStore,
) -> None:
    service = TaskService(store, KeyScheme([]))
    assert len(service.group_index) == 0
    with pytest.raises(UnknownGroupError):
        await service.list('mon')


@pytest.mark.asyncio
async def test_corrupt_record_is_logged_with_key_parts(
    service: TaskService, store: InMemoryKeyValueStore, caplog
) -> None:
    corrupt_key = service.key_scheme.make_key('mon', BASE_TIME, 77)
    await store.put(corrupt_key, b'\x01garbage')

    with caplog.at_level(logging.ERROR, logger='daybook.server.tasks.task_service'):
        with pytest.raises(DecodeError):
            await service.list('mon')

    assert f'mon@{BASE_TIME.isoformat()}#77' in caplog.text
