import asyncio
import logging
import signal

import psutil

from .composer import Composer
from .executor import Executor
from .segment import CommandKind, GlobalConfig, SegmentState, validate_segments
from .scheduler import IntervalWaiter, Scheduler
from .signals import SignalRouter, get_loop

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


def reap_children(timeout = 3.0):
    """Terminate and wait for any child processes still around."""
    children = psutil.Process().children()
    for child in children:
        try:
            child.terminate()
        except psutil.NoSuchProcess:
            pass
    gone, alive = psutil.wait_procs(children, timeout = timeout)
    for child in alive:
        logger.warning('child %d ignored SIGTERM, killing it', child.pid)
        try:
            child.kill()
        except psutil.NoSuchProcess:
            pass
    if alive:
        psutil.wait_procs(alive, timeout = timeout)
    return len(children)


class Status(object):
    def __init__(self, segments, publisher, config = GlobalConfig(), executor = None, waiter = IntervalWaiter):
        self.config = config
        self.segments = validate_segments(list(segments), config)
        self.states = [SegmentState(spec) for spec in self.segments]
        self.publisher = publisher
        self.executor = Executor(config.script_dir) if executor is None else executor
        self.composer = Composer(self.states, config, publisher)
        self.scheduler = Scheduler(self.states, self.executor, self.on_update, waiter = waiter)
        self.router = SignalRouter(self.segments, self.scheduler, config.update_all_signal)
        self.stop = True
        self.stopping = None
        self.prime_constants()

    def prime_constants(self):
        for state in self.states:
            if state.spec.command.kind is CommandKind.CONSTANT:
                state.update(Executor.format(state.spec.command.target, state.spec))

    def on_update(self, index):
        self.composer.refresh(index)

    def shutdown(self):
        if self.stop:
            return False
        logger.info('shutdown requested')
        self.stop = True
        self.stopping.set()
        return True

    async def co_once(self):
        """Run every segment once, concurrently, and publish the result."""
        results = await asyncio.gather(
                *(self.executor.run(state.spec) for state in self.states),
                return_exceptions = True,
        )
        for state, result in zip(self.states, results):
            state.executions += 1
            if isinstance(result, Exception):
                state.failures += 1
                logger.warning('segment %d (%s) failed: %s', state.index, state.spec.command, result)
            else:
                state.update(result)
        return self.composer.publish_initial()

    async def co_run(self):
        loop = get_loop()
        self.stop = False
        self.stopping = asyncio.Event()
        for signum in STOP_SIGNALS:
            loop.add_signal_handler(signum, self.shutdown)
        try:
            self.composer.publish_initial()
            self.router.install(loop)
            self.scheduler.start()
            logger.info('running %d segments', len(self.states))
            await self.stopping.wait()
        finally:
            logger.info('shutting down')
            self.router.uninstall(loop)
            for signum in STOP_SIGNALS:
                loop.remove_signal_handler(signum)
            await self.scheduler.stop()
            self.stop = True
            await loop.run_in_executor(None, reap_children)

    def run(self):
        return asyncio.run(self.co_run())

    def run_once(self):
        return asyncio.run(self.co_once())
