"""Status line for dwm built from periodically run commands."""

from .color import Coloring
from .errors import BlockStatusError, ConfigurationError, ExecutionError, PublishError
from .segment import Command, CommandKind, GlobalConfig, SegmentSpec, SegmentState
from .status import Status

__version__ = '0.3.0'

__all__ = [
    'BlockStatusError', 'Coloring', 'Command', 'CommandKind', 'ConfigurationError',
    'ExecutionError', 'GlobalConfig', 'PublishError', 'SegmentSpec', 'SegmentState', 'Status',
]
