"""Utility functions for daybook."""

from daybook.utils.codec import decode_task, decode_wire, encode_task
from daybook.utils.errors import (
    DaybookError,
    DecodeError,
    EncodeError,
    StoreError,
    UnknownGroupError,
)
from daybook.utils.keys import KeyScheme, MonotonicStamp, prefix_upper_bound


__all__ = [
    'DaybookError',
    'DecodeError',
    'EncodeError',
    'KeyScheme',
    'MonotonicStamp',
    'StoreError',
    'UnknownGroupError',
    'decode_task',
    'decode_wire',
    'encode_task',
    'prefix_upper_bound',
]
