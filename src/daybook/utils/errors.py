"""Custom exceptions for daybook errors."""


class DaybookError(Exception):
    """Base exception for daybook errors."""


class UnknownGroupError(DaybookError):
    """Exception raised when a group is not one of the configured groups."""

    def __init__(self, group: str):
        """Initializes the UnknownGroupError.

        Args:
            group: The group identifier that was not recognised.
        """
        self.group = group
        self.message = f"Unknown group '{group}'"
        super().__init__(self.message)


class StoreError(DaybookError):
    """Exception raised when the key-value store fails (I/O or corruption)."""

    def __init__(self, message: str):
        """Initializes the StoreError.

        Args:
            message: A descriptive error message.
        """
        self.message = message
        super().__init__(f'Store Error: {message}')


class EncodeError(DaybookError):
    """Exception raised when a task cannot be serialized."""

    def __init__(self, message: str):
        """Initializes the EncodeError.

        Args:
            message: A descriptive error message.
        """
        self.message = message
        super().__init__(f'Encode Error: {message}')


class DecodeError(DaybookError):
    """Exception raised when a payload cannot be deserialized into a task.

    When raised while reading stored records, ``key`` holds the key of the
    offending record; it is ``None`` for inbound payloads.
    """

    def __init__(self, message: str, key: bytes | None = None):
        """Initializes the DecodeError.

        Args:
            message: A descriptive error message.
            key: The store key of the record that failed to decode, if any.
        """
        self.message = message
        self.key = key
        super().__init__(f'Decode Error: {message}')
