import asyncio
import logging
import os

from .color import split_color_prefix
from .errors import ExecutionError
from .segment import CommandKind, Output

logger = logging.getLogger(__name__)


class Executor(object):
    """Runs a segment's command once and formats what it printed."""

    shell = '/bin/sh'

    def __init__(self, script_dir = '.', shell = None):
        self.script_dir = script_dir
        if shell is not None:
            self.shell = shell

    def argv(self, command):
        if command.kind is CommandKind.SCRIPT:
            return [self.shell, os.path.join(self.script_dir, command.target)] + list(command.args)
        if command.kind is CommandKind.PROGRAM:
            return [command.target] + list(command.args)
        raise ExecutionError('command is not executable', context = {'command': command})

    @staticmethod
    def format(raw, spec):
        if raw.endswith('\n'):
            raw = raw[:-1]
        color, text = split_color_prefix(raw)
        if spec.trim:
            text = text.strip()
        return Output(text, color)

    async def run(self, spec):
        command = spec.command
        if command.kind is CommandKind.CONSTANT:
            return self.format(command.target, spec)

        argv = self.argv(command)
        try:
            proc = await asyncio.create_subprocess_exec(
                    *argv,
                    stdin = asyncio.subprocess.DEVNULL,
                    stdout = asyncio.subprocess.PIPE,
                    stderr = asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionError('could not start command',
                                 context = {'segment': spec.index, 'argv': argv}, cause = e) from e

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            # Shutting down: don't leave the child behind unreaped
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
            await proc.wait()
            raise

        if proc.returncode != 0:
            raise ExecutionError('command exited with status {}'.format(proc.returncode), context = {
                'segment': spec.index,
                'argv': argv,
                'stderr': stderr.decode('utf-8', 'replace').strip(),
            })
        if stderr:
            logger.debug('segment %d stderr: %s', spec.index, stderr.decode('utf-8', 'replace').strip())
        output = self.format(stdout.decode('utf-8', 'replace'), spec)
        if not output.text and not spec.hide_if_empty:
            logger.debug('segment %d (%s) produced empty output', spec.index, command)
        return output
