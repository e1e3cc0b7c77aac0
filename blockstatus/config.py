"""YAML configuration loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .color import Coloring, is_color
from .errors import ConfigurationError
from .segment import Command, GlobalConfig, SegmentSpec, validate_segments
from .signals import max_signal_offset

APP_NAME = 'blockstatus'
CONFIG_NAME = 'blockstatus.yaml'


def default_config_path() -> Path:
    return Path(typer.get_app_dir(APP_NAME)) / CONFIG_NAME


def expand_path(value: str) -> str:
    return os.path.expanduser(os.path.expandvars(value))


def _check_offset(value: int) -> int:
    limit = max_signal_offset()
    if value > limit:
        raise ValueError(f'signal offset {value} is beyond SIGRTMAX (max offset {limit})')
    return value


class ColoringConfig(BaseModel):
    """Color names for each part of a segment."""

    text: Optional[str] = None
    icon: Optional[str] = None
    left_separator: Optional[str] = None
    right_separator: Optional[str] = None

    model_config = {'extra': 'forbid'}

    def resolve(self, colors: dict[str, int], where: str) -> Coloring:
        resolved = {}
        for part, name in self.model_dump().items():
            if name is None:
                continue
            if name not in colors:
                raise ConfigurationError(f'undefined color: {name}', context={'where': where, 'part': part})
            resolved[part] = colors[name]
        return Coloring(**resolved)


class SegmentConfig(BaseModel):
    script: Optional[str] = Field(default=None, min_length=1)
    program: Optional[str] = Field(default=None, min_length=1)
    constant: Optional[str] = None
    args: list[str] = Field(default_factory=list)

    update_interval: Optional[float] = Field(default=None, gt=0, description='Seconds between updates')
    signals: list[int] = Field(default_factory=list)
    hide_if_empty: bool = False
    trim: bool = False

    icon: Optional[str] = None
    left_separator: Optional[str] = None
    right_separator: Optional[str] = None
    coloring: ColoringConfig = Field(default_factory=ColoringConfig)

    model_config = {'extra': 'forbid'}

    @field_validator('signals')
    @classmethod
    def _validate_signals(cls, value: list[int]) -> list[int]:
        for offset in value:
            if offset < 0:
                raise ValueError(f'signal offset {offset} is negative')
            _check_offset(offset)
        return value

    @model_validator(mode='after')
    def _validate_kind(self) -> 'SegmentConfig':
        kinds = [k for k in ('script', 'program', 'constant') if getattr(self, k) is not None]
        if len(kinds) != 1:
            raise ValueError('a segment needs exactly one of script, program or constant')
        if self.constant is not None and self.args:
            raise ValueError('a constant segment takes no args')
        return self

    def command(self) -> Command:
        if self.script is not None:
            return Command.script(expand_path(self.script), self.args)
        if self.program is not None:
            return Command.program(expand_path(self.program), self.args)
        return Command.constant(self.constant)


class ConfigFile(BaseModel):
    segments: list[SegmentConfig] = Field(default_factory=list)

    script_dir: Optional[str] = None
    left_separator: str = ''
    right_separator: str = ''
    update_all_signal: Optional[int] = Field(default=None, ge=0)

    colors: dict[str, int] = Field(default_factory=dict)
    coloring: ColoringConfig = Field(default_factory=ColoringConfig)

    model_config = {'extra': 'forbid'}

    @field_validator('update_all_signal')
    @classmethod
    def _validate_update_all(cls, value: Optional[int]) -> Optional[int]:
        return value if value is None else _check_offset(value)

    @field_validator('colors')
    @classmethod
    def _validate_colors(cls, value: dict[str, int]) -> dict[str, int]:
        for name, color in value.items():
            if not is_color(color):
                raise ValueError(f'color {name!r} must be a control byte between 1 and 31 '
                                 'other than tab, newline or carriage return')
        return value


def _format_validation_error(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item['loc']) or '<root>'
        lines.append(f'{location}: {item["msg"]}')
    return '; '.join(lines)


def parse_config(data: Any, base_dir: Path | str = '.') -> tuple[GlobalConfig, list[SegmentSpec]]:
    """Validate already-decoded configuration data."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError('configuration must be a mapping at the top level')
    try:
        parsed = ConfigFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f'invalid configuration: {_format_validation_error(e)}', cause=e) from e

    script_dir = expand_path(parsed.script_dir) if parsed.script_dir is not None else str(base_dir)
    if not os.path.isabs(script_dir):
        script_dir = os.path.join(str(base_dir), script_dir)

    needs_scripts = any(segment.script is not None for segment in parsed.segments)
    if (needs_scripts or parsed.script_dir is not None) and not os.path.isdir(script_dir):
        raise ConfigurationError('script directory does not exist', context={'script_dir': script_dir})

    config = GlobalConfig(
        left_separator=parsed.left_separator,
        right_separator=parsed.right_separator,
        script_dir=script_dir,
        coloring=parsed.coloring.resolve(parsed.colors, 'global'),
        update_all_signal=parsed.update_all_signal,
    )

    specs = []
    for index, segment in enumerate(parsed.segments):
        specs.append(SegmentSpec(
            index=index,
            command=segment.command(),
            update_interval=segment.update_interval,
            signals=frozenset(segment.signals),
            hide_if_empty=segment.hide_if_empty,
            icon=segment.icon or '',
            left_separator=segment.left_separator,
            right_separator=segment.right_separator,
            coloring=segment.coloring.resolve(parsed.colors, f'segment {index}'),
            trim=segment.trim,
        ))
    return config, validate_segments(specs, config)


def load_config(path: Path | str | None = None) -> tuple[GlobalConfig, list[SegmentSpec]]:
    """Read and validate a YAML configuration file."""
    path = Path(expand_path(str(path))) if path is not None else default_config_path()
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigurationError(f'error reading config file {path}: {e.strerror or e}', cause=e) from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f'config file {path} is not valid YAML: {e}', cause=e) from e
    return parse_config(data, base_dir=path.resolve().parent)
