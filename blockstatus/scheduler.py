import asyncio
import logging
import math
import time

from .errors import ExecutionError

logger = logging.getLogger(__name__)


class IntervalWaiter(object):
    """Sleeps until the next multiple of ``interval`` after the first wait.

    Deadlines don't drift with execution time; ticks missed while the machine
    was suspended are skipped rather than fired in a burst.
    """

    def __init__(self, interval, clock = time.monotonic):
        self.interval, self.clock = interval, clock
        self.deadline = None

    async def wait(self):
        now = self.clock()
        if self.deadline is None:
            self.deadline = now
        self.deadline += self.interval
        if self.deadline <= now:
            missed = math.floor((now - self.deadline) / self.interval) + 1
            self.deadline += missed * self.interval
        await asyncio.sleep(self.deadline - now)


class Scheduler(object):
    """Per-segment timers and workers.

    Every segment gets a worker task fed by its own one-slot queue, so a slow
    command only ever holds up its own segment. A request for a segment that
    is already queued or running is dropped.
    """

    def __init__(self, states, executor, on_update = None, waiter = IntervalWaiter):
        self.states = list(states)
        self.executor = executor
        self.on_update = on_update
        self.waiter = waiter
        self.queues = []
        self.tasks = []

    def start(self):
        self.queues = [asyncio.Queue(1) for _ in self.states]
        for state in self.states:
            self.tasks.append(asyncio.create_task(self.co_worker(state.index)))
        for state in self.states:
            if state.spec.update_interval is not None:
                self.tasks.append(asyncio.create_task(self.co_timer(state.index, state.spec.update_interval)))

    async def stop(self):
        tasks, self.tasks = self.tasks, []
        self.queues = []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions = True)
        for state in self.states:
            state.in_flight = False

    def request_update(self, index):
        if not 0 <= index < len(self.states) or not self.queues:
            return False
        state = self.states[index]
        if state.in_flight:
            logger.debug('segment %d busy, dropping request', index)
            return False
        state.in_flight = True
        self.queues[index].put_nowait(index)
        return True

    def request_update_all(self):
        return [self.request_update(state.index) for state in self.states]

    async def co_timer(self, index, interval):
        waiter = self.waiter(interval)
        while True:
            self.request_update(index)
            await waiter.wait()

    async def co_worker(self, index):
        state = self.states[index]
        queue = self.queues[index]
        while True:
            await queue.get()
            try:
                output = await self.executor.run(state.spec)
            except ExecutionError as e:
                state.failures += 1
                logger.warning('segment %d (%s) failed, keeping previous text: %s',
                               index, state.spec.command, e)
                continue
            except Exception:
                state.failures += 1
                logger.exception('segment %d (%s) raised', index, state.spec.command)
                continue
            finally:
                state.executions += 1
                state.in_flight = False
            state.update(output)
            if self.on_update is not None:
                self.on_update(index)
