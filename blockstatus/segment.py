import enum
from collections import namedtuple

from .color import Coloring, is_color
from .errors import ConfigurationError
from .signals import max_signal_offset


class CommandKind(enum.Enum):
    SCRIPT = 'script'
    PROGRAM = 'program'
    CONSTANT = 'constant'


class Command(namedtuple('Command', 'kind target args')):
    """What a segment runs.

    ``target`` is the script name for SCRIPT, the executable for PROGRAM and
    the text itself for CONSTANT.
    """
    __slots__ = ()

    @classmethod
    def script(cls, name, args = ()):
        return cls(CommandKind.SCRIPT, name, tuple(args))

    @classmethod
    def program(cls, path, args = ()):
        return cls(CommandKind.PROGRAM, path, tuple(args))

    @classmethod
    def constant(cls, text):
        return cls(CommandKind.CONSTANT, text, ())

    def __str__(self):
        if self.kind is CommandKind.CONSTANT:
            return repr(self.target)
        return ' '.join((self.target,) + self.args)


SegmentSpec = namedtuple('SegmentSpec', [
    'index', 'command', 'update_interval', 'signals', 'hide_if_empty',
    'icon', 'left_separator', 'right_separator', 'coloring', 'trim',
], defaults = (None, frozenset(), False, '', None, None, Coloring(), False))

GlobalConfig = namedtuple('GlobalConfig', [
    'left_separator', 'right_separator', 'script_dir', 'coloring', 'update_all_signal',
], defaults = ('', '', '.', Coloring(), None))

# One Executor result: formatted text plus the color parsed from the output.
Output = namedtuple('Output', 'text color')

Snapshot = namedtuple('Snapshot', 'text color visible')


class SegmentState(object):
    """Latest result of one segment.

    Only that segment's worker writes here; the composer reads snapshots.
    """

    def __init__(self, spec):
        self.spec = spec
        self.text = ''
        self.color = None
        self.in_flight = False
        self.executions = 0
        self.failures = 0

    @property
    def index(self):
        return self.spec.index

    @property
    def visible(self):
        return bool(self.text) or not self.spec.hide_if_empty

    def update(self, output):
        self.text = output.text
        self.color = output.color

    def snapshot(self):
        return Snapshot(self.text, self.color, self.visible)

    def __repr__(self):
        return '<SegmentState {} {!r} in_flight={}>'.format(self.index, self.text, self.in_flight)


def validate_segments(specs, config = None):
    """Refuse a segment list the scheduler cannot run."""
    limit = max_signal_offset()

    def check_signal(offset, where):
        if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
            raise ConfigurationError('signal offset must be a non-negative integer',
                                     context = {'where': where, 'offset': offset})
        if offset > limit:
            raise ConfigurationError('signal offset is beyond SIGRTMAX',
                                     context = {'where': where, 'offset': offset, 'max': limit})

    def check_coloring(coloring, where):
        for name, color in coloring._asdict().items():
            if color is not None and not is_color(color):
                raise ConfigurationError('invalid color byte',
                                         context = {'where': where, 'part': name, 'color': color})

    if config is not None:
        if config.update_all_signal is not None:
            check_signal(config.update_all_signal, 'update_all_signal')
        check_coloring(config.coloring, 'global')

    for position, spec in enumerate(specs):
        where = 'segment {}'.format(position)
        if spec.index != position:
            raise ConfigurationError('segment index does not match its position',
                                     context = {'where': where, 'index': spec.index})
        if not isinstance(spec.command, Command) or not isinstance(spec.command.kind, CommandKind):
            raise ConfigurationError('unknown command', context = {'where': where, 'command': spec.command})
        if spec.command.kind is not CommandKind.CONSTANT and not spec.command.target:
            raise ConfigurationError('empty command', context = {'where': where})
        interval = spec.update_interval
        if interval is not None and (isinstance(interval, bool)
                                     or not isinstance(interval, (int, float)) or interval <= 0):
            raise ConfigurationError('update_interval must be positive',
                                     context = {'where': where, 'update_interval': interval})
        for offset in spec.signals:
            check_signal(offset, where)
        check_coloring(spec.coloring, where)
    return specs
