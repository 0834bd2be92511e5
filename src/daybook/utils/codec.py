"""Serialization of `Task` objects to and from byte payloads.

Stored payloads carry a leading format version byte followed by the task's
JSON form. Inbound request bodies are plain JSON without a version byte.
"""

import logging

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from daybook.types import Task
from daybook.utils.errors import DecodeError, EncodeError


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
_VERSION_BYTE = bytes([FORMAT_VERSION])


def encode_task(task: Task) -> bytes:
    """Serializes a task into a versioned payload.

    Args:
        task: The task to serialize.

    Returns:
        The version byte followed by the UTF-8 JSON form of the task.

    Raises:
        EncodeError: If the task cannot be serialized.
    """
    if not isinstance(task, Task):
        raise EncodeError(f'Expected a Task, got {type(task).__name__}')
    try:
        body = task.model_dump_json(exclude_none=True).encode('utf-8')
    except (PydanticSerializationError, UnicodeEncodeError) as e:
        raise EncodeError(str(e)) from e
    return _VERSION_BYTE + body


def decode_task(payload: bytes, key: bytes | None = None) -> Task:
    """Deserializes a versioned payload produced by `encode_task`.

    Args:
        payload: The stored payload.
        key: The store key the payload was read from, reported on failure.

    Returns:
        The decoded task.

    Raises:
        DecodeError: If the payload is empty, has an unsupported version or
            does not hold a valid task.
    """
    if not payload:
        raise DecodeError('Empty payload', key=key)
    version = payload[0]
    if version != FORMAT_VERSION:
        raise DecodeError(
            f'Unsupported payload version {version}', key=key
        )
    return _validate(payload[1:], key)


def decode_wire(body: bytes) -> Task:
    """Deserializes an unversioned JSON request body into a task.

    Raises:
        DecodeError: If the body does not hold a valid task.
    """
    if not body:
        raise DecodeError('Empty request body')
    return _validate(body, None)


def _validate(data: bytes, key: bytes | None) -> Task:
    try:
        return Task.model_validate_json(data)
    except ValidationError as e:
        logger.debug(f'Rejected payload: {e}')
        raise DecodeError(
            f'{e.error_count()} validation error(s): {e.errors()[0]["msg"]}',
            key=key,
        ) from e
