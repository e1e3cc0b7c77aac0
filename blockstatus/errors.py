"""Error types raised by blockstatus."""

from collections.abc import Mapping


def _normalize(value):
    if isinstance(value, Mapping):
        return {key: _normalize(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


class BlockStatusError(Exception):
    """Base error carrying a printable context mapping."""

    def __init__(self, message, context = None, cause = None):
        super().__init__(message)
        self.context = _normalize(context or {})
        if cause is not None:
            self.__cause__ = cause

    def __str__(self):
        message = super().__str__()
        if not self.context:
            return message
        details = ', '.join('{}={}'.format(k, v) for k, v in self.context.items())
        return '{} ({})'.format(message, details)


class ConfigurationError(BlockStatusError):
    """The configuration or the segment list is invalid."""


class ExecutionError(BlockStatusError):
    """A segment command could not be run or exited unsuccessfully."""


class PublishError(BlockStatusError):
    """The status sink could not be opened or written."""
