"""Configuration for the daybook server.

Values come from the environment (optionally seeded from a ``.env`` file)
and may be overridden by command line flags.
"""

import logging
import os

from pydantic import BaseModel, Field, field_validator


logger = logging.getLogger(__name__)

DEFAULT_GROUPS = ['mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun']


class DaybookConfig(BaseModel):
    """Settings for a daybook server process."""

    groups: list[str] = Field(default_factory=lambda: list(DEFAULT_GROUPS))
    """The enumerated set of groups the service accepts."""
    database_url: str | None = None
    """SQLAlchemy URL of a durable store. A temporary SQLite file is used,
    and removed at shutdown, when unset."""
    table_name: str = 'todos'
    host: str = 'localhost'
    port: int = 8080

    @field_validator('groups', mode='before')
    @classmethod
    def split_groups(cls, value):
        if isinstance(value, str):
            value = [g.strip() for g in value.split(',') if g.strip()]
        return value

    @field_validator('groups')
    @classmethod
    def require_groups(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError('At least one group must be configured')
        return value

    @classmethod
    def from_env(cls, **overrides) -> 'DaybookConfig':
        """Builds a config from ``DAYBOOK_*`` variables and ``DATABASE_URL``.

        Keyword arguments that are not None take precedence over the
        environment.
        """
        values = {
            'groups': os.environ.get('DAYBOOK_GROUPS'),
            'database_url': os.environ.get('DATABASE_URL'),
            'table_name': os.environ.get('DAYBOOK_TABLE'),
            'host': os.environ.get('DAYBOOK_HOST'),
            'port': os.environ.get('DAYBOOK_PORT'),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        config = cls(**{k: v for k, v in values.items() if v is not None})
        logger.debug(f'Loaded config: {config!r}')
        return config
