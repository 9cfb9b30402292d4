"""CLI output formatting utilities.

Renders command results as text, JSON or YAML.
"""
from __future__ import annotations

import datetime as _dt
import json
import sys
from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, Optional, Sequence, TextIO

import yaml


class OutputFormat(str, Enum):
    """Output format options."""
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"


@dataclass
class OutputConfig:
    """Configuration for output formatting."""
    format: OutputFormat = OutputFormat.TEXT
    verbose: bool = False
    quiet: bool = False
    file: Optional[TextIO] = None

    @property
    def stream(self) -> TextIO:
        """Get the output stream."""
        return self.file or sys.stdout


class OutputWriter:
    """Handles formatted output for CLI commands."""

    def __init__(self, config: Optional[OutputConfig] = None):
        self.config = config or OutputConfig()

    @property
    def structured(self) -> bool:
        """True when the configured format is machine-readable (JSON/YAML)."""
        return self.config.format in (OutputFormat.JSON, OutputFormat.YAML)

    def print(self, *args, **kwargs) -> None:
        """Print to the configured output stream."""
        if self.config.quiet:
            return
        kwargs.setdefault("file", self.config.stream)
        print(*args, **kwargs)

    def print_lines(self, lines: Sequence[str]) -> None:
        for line in lines:
            self.print(line)

    def print_data(self, data: Any) -> None:
        """Print data in the configured format (dict, list or dataclass)."""
        fmt = self.config.format
        if fmt == OutputFormat.JSON:
            self.print(json.dumps(normalize(data), indent=2, default=str))
        elif fmt == OutputFormat.YAML:
            self.print(yaml.safe_dump(normalize(data), default_flow_style=False, sort_keys=False), end="")
        else:
            self._print_text(data)

    def _print_text(self, data: Any) -> None:
        if isinstance(data, str):
            self.print(data)
        elif isinstance(data, dict):
            for key, value in data.items():
                self.print(f"{key}: {value}")
        elif isinstance(data, (list, tuple)):
            for item in data:
                self.print(item)
        elif is_dataclass(data) and not isinstance(data, type):
            self._print_text(normalize(data))
        else:
            self.print(str(data))


def normalize(data: Any) -> Any:
    """Normalize data for JSON/YAML serialization."""
    if is_dataclass(data) and not isinstance(data, type):
        return normalize(asdict(data))
    if isinstance(data, dict):
        return {str(k): normalize(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [normalize(v) for v in data]
    if isinstance(data, Enum):
        return data.value
    if isinstance(data, _dt.time):
        return data.strftime("%H:%M")
    if isinstance(data, (_dt.date, _dt.datetime)):
        return data.isoformat()
    return data


def output_config_from_args(args: Any) -> OutputConfig:
    """Build an OutputConfig from parsed common CLI arguments."""
    return OutputConfig(
        format=OutputFormat(getattr(args, "output", None) or "text"),
        verbose=bool(getattr(args, "verbose", False)),
        quiet=bool(getattr(args, "quiet", False)),
    )


def writer_for(args: Any) -> OutputWriter:
    return OutputWriter(output_config_from_args(args))
