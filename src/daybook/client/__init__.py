"""Client-side components for interacting with a daybook server."""

from daybook.client.client import DaybookClient
from daybook.client.errors import (
    DaybookClientError,
    DaybookClientHTTPError,
    DaybookClientJSONError,
)


__all__ = [
    'DaybookClient',
    'DaybookClientError',
    'DaybookClientHTTPError',
    'DaybookClientJSONError',
]
