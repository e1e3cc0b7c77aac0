"""Command-line entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import default_config_path, load_config
from .errors import ConfigurationError, PublishError
from .log import configure_logging
from .publish import RootWindowPublisher, StdoutPublisher
from .status import Status

logger = logging.getLogger(__name__)

app = typer.Typer(help='Compose a dwm status line from periodically run commands.', add_completion=False)


@app.command()
def main(
    config: Optional[Path] = typer.Option(
        None, '--config', '-c', help='Configuration file (defaults to the app config directory).'
    ),
    stdout: bool = typer.Option(False, '--stdout', help='Print the status line instead of setting the root window name.'),
    display: Optional[str] = typer.Option(None, '--display', help='X display to publish to.'),
    once: bool = typer.Option(False, '--once', help='Run every segment once, publish and exit.'),
    check: bool = typer.Option(False, '--check', help='Validate the configuration and exit.'),
    log_level: Optional[str] = typer.Option(None, '--log-level', help='Log level name or number.'),
    debug: bool = typer.Option(False, '--debug', help='Shortcut for --log-level DEBUG.'),
    log_file: Optional[str] = typer.Option(None, '--log-file', help='Also write logs to this file.'),
) -> None:
    configure_logging(level=log_level, debug=debug, log_file=log_file)

    path = config if config is not None else default_config_path()
    logger.info('loading config file %s', path)
    try:
        global_config, segments = load_config(path)
    except ConfigurationError as e:
        logger.error('%s', e)
        raise typer.Exit(code=1)

    if check:
        typer.echo(f'{path}: {len(segments)} segments OK')
        return

    try:
        publisher = StdoutPublisher() if stdout else RootWindowPublisher(display)
    except PublishError as e:
        logger.error('%s', e)
        raise typer.Exit(code=1)

    status = Status(segments, publisher, global_config)
    try:
        if once:
            status.run_once()
        else:
            status.run()
    finally:
        publisher.close()
