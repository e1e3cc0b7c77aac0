import asyncio
import os
import signal

from blockstatus.signals import SignalRouter, build_routes, max_signal_offset

from conftest import program


class RecordingScheduler(object):
    def __init__(self):
        self.requests = []
        self.all_requests = 0

    def request_update(self, index):
        self.requests.append(index)
        return True

    def request_update_all(self):
        self.all_requests += 1


SPECS = [
    program(0, 'a', signals=frozenset([1])),
    program(1, 'b', signals=frozenset([1, 2])),
    program(2, 'c'),
]


def test_build_routes():
    assert build_routes(SPECS) == {1: (0, 1), 2: (1,)}


def test_dispatch_routes_to_mapped_segments():
    scheduler = RecordingScheduler()
    router = SignalRouter(SPECS, scheduler, update_all_signal=10)
    router.dispatch(1)
    router.dispatch(2)
    assert scheduler.requests == [0, 1, 1]


def test_update_all_reaches_segments_without_signals():
    scheduler = RecordingScheduler()
    router = SignalRouter(SPECS, scheduler, update_all_signal=10)
    router.dispatch(10)
    assert scheduler.all_requests == 1
    assert scheduler.requests == []


def test_unmapped_offsets_are_ignored():
    scheduler = RecordingScheduler()
    router = SignalRouter(SPECS, scheduler)
    router.dispatch(7)
    router.dispatch(max_signal_offset() + 5)
    assert scheduler.requests == []
    assert scheduler.all_requests == 0


def test_offsets_include_update_all():
    router = SignalRouter(SPECS, RecordingScheduler(), update_all_signal=10)
    assert router.offsets() == [1, 2, 10]


def test_real_signal_is_dispatched_in_the_loop():
    scheduler = RecordingScheduler()
    router = SignalRouter(SPECS, scheduler)

    async def scenario():
        loop = asyncio.get_running_loop()
        router.install(loop)
        try:
            os.kill(os.getpid(), signal.SIGRTMIN + 2)
            for _ in range(100):
                await asyncio.sleep(0.01)
                if scheduler.requests:
                    break
        finally:
            router.uninstall(loop)

    asyncio.run(scenario())
    assert scheduler.requests == [1]
    assert router.installed == []
