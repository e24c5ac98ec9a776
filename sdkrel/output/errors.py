"""Error presentation utilities.

Centralized error formatting and exit code mapping for the release pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sdkrel.core.errors import ExitCode
from sdkrel.output.console import Style
from sdkrel.release.errors import (
    AssemblyFailure,
    ConfigError,
    CyclicDependency,
    DescriptorInvalid,
    DuplicateModule,
    FinalizeFailure,
    ReleaseError,
    RollbackOutcome,
    SigningFailure,
    StagingFailure,
    UnknownDependency,
)

if TYPE_CHECKING:
    from sdkrel.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_exit_code"]


def _print_rollback(outcome: RollbackOutcome, console: ConsoleProtocol) -> None:
    if outcome.succeeded:
        rolled = ", ".join(outcome.rolled_back) or "nothing staged"
        console.print(f"rollback: ok ({rolled})", Style.DIM)
        if outcome.failed:
            failed = ", ".join(outcome.failed)
            console.print(f"  unit deletes failed ({failed}), session dropped", Style.DIM)
        return
    console.error("rollback FAILED: staged artifacts may be orphaned")
    if outcome.failed:
        console.print(f"not rolled back: {', '.join(outcome.failed)}", Style.WARNING)
    if not outcome.dropped:
        console.print("staging session was not dropped", Style.WARNING)
    for message in outcome.messages:
        console.print(f"  {message}", Style.DIM)
    console.print(
        "hint: drop the staging repository manually in the repository manager", Style.DIM
    )


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print which stage failed and why."""
    match error:
        case ConfigError(message=message, path=path, hint=hint):
            console.error(f"config: {message}" + (f" ({path})" if path else ""))
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case CyclicDependency():
            console.error(f"graph: cyclic dependency: {error.pretty()}")
        case UnknownDependency(module=module, dependency=dependency):
            console.error(f"graph: {module} depends on undeclared module {dependency}")
        case DuplicateModule(name=name):
            console.error(f"graph: module declared twice: {name}")
        case AssemblyFailure(module=module, reason=reason, kind=kind, hint=hint):
            what = f" ({kind.value})" if kind else ""
            console.error(f"assembly: {module}{what}: {reason}")
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case DescriptorInvalid(module=module, field=field, reason=reason):
            console.error(f"descriptor: {module}.{field}: {reason}")
        case SigningFailure(module=module, reason=reason, hint=hint):
            where = f"{module}: " if module else ""
            console.error(f"signing: {where}{reason}")
            if hint:
                console.print(f"hint: {hint}", Style.DIM)
        case StagingFailure(module=module, reason=reason, rollback=outcome):
            where = module or "(session)"
            console.error(f"staging: {where}: {reason}")
            _print_rollback(outcome, console)
        case FinalizeFailure(reason=reason, rollback=outcome):
            console.error(f"finalize: {reason}")
            _print_rollback(outcome, console)


def release_exit_code(error: ReleaseError) -> int:
    match error:
        case ConfigError() | DescriptorInvalid():
            return int(ExitCode.USER_ERROR)
        case CyclicDependency() | UnknownDependency() | DuplicateModule():
            return int(ExitCode.GRAPH_ERROR)
        case AssemblyFailure():
            return int(ExitCode.ASSEMBLY_ERROR)
        case SigningFailure():
            return int(ExitCode.SIGNING_ERROR)
        case StagingFailure(rollback=outcome) | FinalizeFailure(rollback=outcome):
            if not outcome.succeeded:
                return int(ExitCode.ROLLBACK_FAILED)
            return int(ExitCode.PUBLISH_ERROR)
    # Fallback for exhaustiveness
    return int(ExitCode.USER_ERROR)
