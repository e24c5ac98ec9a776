from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from sdkrel.core.errors import ExitCode
from sdkrel.core.result import Err
from sdkrel.output.console import ConsoleProtocol, RichConsole
from sdkrel.output.errors import print_release_error
from sdkrel.release.config import ReleaseConfig, load_release_config


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ReleaseConfig
    console: ConsoleProtocol


def build_context(config_path: Path) -> CLIContext:
    console = RichConsole()
    config = load_release_config(config_path)
    if isinstance(config, Err):
        print_release_error(config.error, console)
        raise typer.Exit(code=int(ExitCode.USER_ERROR))
    return CLIContext(config=config.value, console=console)
