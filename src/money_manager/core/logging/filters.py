"""
Log filters: tool-call request id and static extra fields.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Any, Iterator, Optional


# Tool calls run in worker threads, one call per thread at a time
_request_id_storage = threading.local()


def set_request_id(request_id: str) -> None:
    """Bind a request id to the current thread."""
    _request_id_storage.value = request_id


def get_request_id() -> Optional[str]:
    """
    Request id bound to the current thread.

    Example:
        >>> set_request_id("call-1")
        >>> get_request_id()
        'call-1'
    """
    return getattr(_request_id_storage, 'value', None)


def clear_request_id() -> None:
    """Unbind the request id of the current thread."""
    if hasattr(_request_id_storage, 'value'):
        delattr(_request_id_storage, 'value')


@contextmanager
def request_id_context(request_id: str) -> Iterator[str]:
    """
    Bind request_id for the duration of a block.

    Example:
        >>> with request_id_context("call-1"):
        ...     logger.info("Tool started")  # request_id=call-1
    """
    previous = get_request_id()
    set_request_id(request_id)
    try:
        yield request_id
    finally:
        if previous is None:
            clear_request_id()
        else:
            set_request_id(previous)


class RequestIdFilter(logging.Filter):
    """Adds request_id to records emitted while a tool call is running."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = get_request_id()
        if request_id:
            record.request_id = request_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields (service, environment, ...) to every record.

    Fields already set on the record win.
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
