"""Data types shared by the daybook server and client."""

import re

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# Go's RFC3339Nano carries up to nine fractional digits; datetime holds six.
_EXTRA_FRACTION = re.compile(r'(\.\d{6})\d+')


class Task(BaseModel):
    """A single task scheduled for a group (typically a day of the week).

    Tasks are immutable once persisted. ``createdAt`` is stamped by the
    service when the caller does not supply it. Bodies sent by older
    clients, which use ``Task``/``Day``/``Created`` (or their lower-case
    forms), are accepted as well.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str = Field(
        min_length=1,
        validation_alias=AliasChoices('description', 'task', 'Task'),
    )
    """What has to be done."""
    group: str = Field(
        default='', validation_alias=AliasChoices('group', 'day', 'Day')
    )
    """The group (day label) the task belongs to."""
    createdAt: datetime | None = Field(  # noqa: N815
        default=None,
        validation_alias=AliasChoices('createdAt', 'created', 'Created'),
    )
    """When the task was created."""

    @field_validator('createdAt', mode='before')
    @classmethod
    def truncate_nanoseconds(cls, value):
        if isinstance(value, str):
            value = _EXTRA_FRACTION.sub(r'\1', value, count=1)
        return value


class TaskList(BaseModel):
    """The ordered descriptions of every task in one group."""

    group: str
    tasks: list[str] = Field(default_factory=list)


class Item(BaseModel):
    """A raw key/value record held by a key-value store."""

    model_config = ConfigDict(frozen=True)

    key: bytes
    value: bytes


class GroupListing(BaseModel):
    """The groups a daybook server accepts."""

    groups: list[str]
