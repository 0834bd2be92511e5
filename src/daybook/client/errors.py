"""Exceptions raised by the daybook client.

Server-side failures keep the tagged error code the server reports
(``UnknownGroupError``, ``StoreError``, ``DecodeError``, ``EncodeError``)
so callers can branch on it rather than on the status number alone.
"""

import json

import httpx


class DaybookClientError(Exception):
    """Base exception for daybook client errors."""


class DaybookClientHTTPError(DaybookClientError):
    """A request failed at the HTTP level or the server returned an error."""

    def __init__(self, status_code: int, message: str, code: str | None = None):
        """Initializes the DaybookClientHTTPError.

        Args:
            status_code: The HTTP status code of the response.
            message: The server's error message, or a description of the
              transport failure.
            code: The server's error code, e.g. ``'UnknownGroupError'``.
              None when the server sent no tagged error body.
        """
        self.status_code = status_code
        self.message = message
        self.code = code
        tag = f' [{code}]' if code else ''
        super().__init__(f'HTTP Error {status_code}{tag}: {message}')

    @classmethod
    def from_response(cls, response: httpx.Response) -> 'DaybookClientHTTPError':
        """Builds the error from a failed response.

        Reads the ``{"error": {"code": ..., "message": ...}}`` body served by
        daybook, falling back to the raw body text for anything else.
        """
        try:
            error = response.json()['error']
            return cls(response.status_code, error['message'], error.get('code'))
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError):
            return cls(response.status_code, response.text)


class DaybookClientJSONError(DaybookClientError):
    """A successful response body could not be parsed into the expected type."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f'JSON Error: {message}')
