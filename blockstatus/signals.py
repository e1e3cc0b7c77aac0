import asyncio
import logging
import signal

logger = logging.getLogger(__name__)


def get_loop(loop = None):
    if loop is None:
        return asyncio.get_running_loop()
    return loop


def max_signal_offset():
    return signal.SIGRTMAX - signal.SIGRTMIN


def build_routes(specs):
    """Map each realtime signal offset to the indices of the segments it refreshes."""
    routes = {}
    for spec in specs:
        for offset in sorted(set(spec.signals)):
            routes.setdefault(offset, []).append(spec.index)
    return {offset: tuple(indices) for offset, indices in routes.items()}


class SignalRouter(object):
    """Turns SIGRTMIN+n deliveries into scheduler requests.

    The handlers go through ``loop.add_signal_handler``: the C-level handler
    only writes the signal number to the loop's wakeup fd, and ``dispatch``
    runs later as an ordinary callback in the loop.
    """

    def __init__(self, specs, scheduler, update_all_signal = None):
        self.scheduler = scheduler
        self.routes = build_routes(specs)
        self.update_all_signal = update_all_signal
        self.installed = []

    def offsets(self):
        offsets = set(self.routes)
        if self.update_all_signal is not None:
            offsets.add(self.update_all_signal)
        return sorted(offsets)

    def install(self, loop = None):
        loop = get_loop(loop)
        for offset in self.offsets():
            signum = signal.SIGRTMIN + offset
            loop.add_signal_handler(signum, self.dispatch, offset)
            self.installed.append(signum)
        if self.installed:
            logger.debug('listening for realtime signals %s', self.offsets())

    def uninstall(self, loop = None):
        loop = get_loop(loop)
        while self.installed:
            loop.remove_signal_handler(self.installed.pop())

    def dispatch(self, offset):
        if offset == self.update_all_signal:
            logger.debug('signal %d: updating all segments', offset)
            self.scheduler.request_update_all()
            return
        indices = self.routes.get(offset, ())
        if indices:
            logger.debug('signal %d: updating segments %s', offset, list(indices))
        for index in indices:
            self.scheduler.request_update(index)
