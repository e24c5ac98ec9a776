"""Adapters for the external build toolchain.

The compiler and documentation generator are driven through configured
commands; this module only knows how to run them and where to find what they
produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from sdkrel.core.result import Err, Ok, Result
from sdkrel.output.console import ConsoleProtocol, Style
from sdkrel.platform.process import run as run_process
from sdkrel.release.config import ToolchainConfig
from sdkrel.release.model import ArtifactKind, Module


@dataclass(frozen=True, slots=True)
class ToolchainError:
    kind: ArtifactKind
    reason: str
    hint: str | None = None


class Toolchain(Protocol):
    def produce(self, module: Module, kind: ArtifactKind) -> Result[Path, ToolchainError]:
        """Build one artifact kind for ``module`` and return the output file."""
        ...


def _placeholders(module: Module) -> dict[str, str]:
    task_prefix = ":" if module.path in {".", ""} else f":{module.path.replace('/', ':')}:"
    return {
        "name": module.name,
        "path": module.path,
        "version": module.version,
        "group": module.group,
        "task_prefix": task_prefix,
    }


class CommandToolchain:
    """Runs one configured command per artifact kind from the project root."""

    def __init__(
        self,
        *,
        root: Path,
        config: ToolchainConfig,
        console: ConsoleProtocol,
        skip_build: bool = False,
    ) -> None:
        self._root = root
        self._config = config
        self._console = console
        # Reuse outputs already on disk instead of running the commands.
        self._skip_build = skip_build

    def command_for(self, module: Module, kind: ArtifactKind) -> list[str]:
        values = _placeholders(module)
        return [arg.format_map(values) for arg in self._config.steps[kind].command]

    def output_for(self, module: Module, kind: ArtifactKind) -> Path:
        rel = self._config.steps[kind].output.format_map(_placeholders(module))
        return (self._root / rel).resolve()

    def produce(self, module: Module, kind: ArtifactKind) -> Result[Path, ToolchainError]:
        try:
            cmd = self.command_for(module, kind)
            output = self.output_for(module, kind)
        except (KeyError, ValueError, IndexError) as e:
            return Err(ToolchainError(kind=kind, reason=f"invalid toolchain template: {e!r}"))
        self._console.print(f"[{module.name}] {kind.value}: {' '.join(cmd)}", Style.DIM)

        if not self._skip_build:
            result = run_process(cmd, cwd=self._root, timeout=self._config.timeout)
            if isinstance(result, Err):
                e = result.error
                return Err(
                    ToolchainError(
                        kind=kind,
                        reason=str(e),
                        hint=e.stderr.strip().splitlines()[-1] if e.stderr.strip() else None,
                    )
                )

        if not output.is_file():
            return Err(ToolchainError(kind=kind, reason=f"output not found: {output}"))
        return Ok(output)
