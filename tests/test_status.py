import asyncio
import logging
import os
import signal

import pytest

from blockstatus.errors import ConfigurationError
from blockstatus.segment import Command, GlobalConfig, SegmentSpec
from blockstatus.status import Status, reap_children

from conftest import constant, program


def battery_and_date(tmp_path):
    (tmp_path / 'battery').write_text('printf ""\n')
    config = GlobalConfig(left_separator=' | ', script_dir=str(tmp_path))
    segments = [
        SegmentSpec(0, Command.script('battery'), update_interval=10, hide_if_empty=True),
        program(1, 'printf', '12:00\n', update_interval=60, icon='🕐'),
    ]
    return config, segments


def test_run_once_hides_empty_battery(tmp_path, publisher):
    config, segments = battery_and_date(tmp_path)
    status = Status(segments, publisher, config)
    assert status.run_once() == ' | 🕐12:00'
    assert publisher.published == [' | 🕐12:00']


def test_run_once_keeps_failed_segment_empty(publisher):
    segments = [program(0, 'sh', '-c', 'exit 1'), constant(1, 'ok')]
    status = Status(segments, publisher)
    assert status.run_once() == 'ok'
    assert status.states[0].failures == 1


def test_constants_are_shown_before_anything_runs(publisher):
    status = Status([constant(0, '<--'), program(1, 'date', signals=frozenset([1]))], publisher)
    assert status.composer.publish_initial() == '<--'


def test_invalid_segments_are_refused(publisher):
    with pytest.raises(ConfigurationError):
        Status([program(0, 'date', update_interval=-1)], publisher)


async def wait_for(predicate, timeout = 5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError('condition not met in time')
        await asyncio.sleep(0.01)


def test_live_run_publishes_initial_then_updates(tmp_path, publisher):
    config, segments = battery_and_date(tmp_path)
    status = Status(segments, publisher, config)

    async def scenario():
        task = asyncio.create_task(status.co_run())
        await wait_for(lambda: publisher.published and publisher.last == ' | 🕐12:00')
        status.shutdown()
        await task

    asyncio.run(asyncio.wait_for(scenario(), 10))
    # Battery is hidden from the start; only the date segment ever shows up
    assert publisher.published[0] == ' | 🕐'
    assert publisher.published[-1] == ' | 🕐12:00'


def test_signal_only_segment_runs_once_per_burst(tmp_path, publisher):
    counter = tmp_path / 'count'
    script = tmp_path / 'counter.sh'
    script.write_text('sleep 0.3\necho x >> "{}"\nwc -l < "{}"\n'.format(counter, counter))
    config = GlobalConfig(script_dir=str(tmp_path), update_all_signal=5)
    segments = [
        SegmentSpec(0, Command.script('counter.sh'), signals=frozenset([1]), trim=True),
        constant(1, '!'),
    ]
    status = Status(segments, publisher, config)

    async def scenario():
        task = asyncio.create_task(status.co_run())
        await wait_for(lambda: publisher.published)
        await asyncio.sleep(0.3)
        assert status.states[0].executions == 0

        for _ in range(5):
            os.kill(os.getpid(), signal.SIGRTMIN + 1)
            await asyncio.sleep(0.02)
        await wait_for(lambda: status.states[0].executions == 1)
        await asyncio.sleep(0.4)
        assert status.states[0].executions == 1
        assert publisher.last == '1!'

        os.kill(os.getpid(), signal.SIGRTMIN + 5)
        await wait_for(lambda: status.states[0].executions == 2)
        assert publisher.last == '2!'

        status.shutdown()
        await task

    asyncio.run(asyncio.wait_for(scenario(), 15))


def test_shutdown_reaps_running_children(publisher):
    segments = [program(0, 'sleep', '30', update_interval=60)]
    status = Status(segments, publisher)

    async def scenario():
        task = asyncio.create_task(status.co_run())
        await wait_for(lambda: status.states[0].in_flight)
        await asyncio.sleep(0.2)
        status.shutdown()
        await task

    asyncio.run(asyncio.wait_for(scenario(), 10))
    assert reap_children(timeout=1) == 0


def test_shutdown_only_acts_once(publisher, caplog):
    caplog.set_level(logging.INFO, logger='blockstatus.status')
    status = Status([constant(0, 'x')], publisher)
    assert not status.shutdown()

    async def scenario():
        task = asyncio.create_task(status.co_run())
        await wait_for(lambda: publisher.published)
        assert status.shutdown()
        assert not status.shutdown()
        await task

    asyncio.run(asyncio.wait_for(scenario(), 10))
    assert status.stop
    assert not status.shutdown()
    requested = [r for r in caplog.records if r.getMessage() == 'shutdown requested']
    assert len(requested) == 1
