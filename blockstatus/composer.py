import logging

from .color import colorize
from .segment import GlobalConfig

logger = logging.getLogger(__name__)


def render(spec, snapshot, config = GlobalConfig()):
    """Render one segment, or '' when it is hidden."""
    if not snapshot.visible:
        return ''
    coloring = spec.coloring.or_default(config.coloring)
    left = config.left_separator if spec.left_separator is None else spec.left_separator
    right = config.right_separator if spec.right_separator is None else spec.right_separator
    text_color = coloring.text if snapshot.color is None else snapshot.color
    return ''.join((
        colorize(left, coloring.left_separator),
        colorize(spec.icon or '', coloring.icon),
        colorize(snapshot.text, text_color),
        colorize(right, coloring.right_separator),
    ))


def compose(states, config = GlobalConfig()):
    return ''.join(render(state.spec, state.snapshot(), config) for state in states)


class Composer(object):
    def __init__(self, states, config, publisher):
        self.states = sorted(states, key = lambda state: state.index)
        self.config = config
        self.publisher = publisher
        self.current = None

    def publish_initial(self):
        self.current = compose(self.states, self.config)
        self.publish(self.current)
        return self.current

    def refresh(self, index = None):
        text = compose(self.states, self.config)
        if text != self.current:
            if index is not None:
                logger.debug('segment %d changed the status line', index)
            self.current = text
            self.publish(text)
        return text

    def publish(self, text):
        try:
            self.publisher.publish(text)
        except Exception:
            logger.exception('publishing status failed')
