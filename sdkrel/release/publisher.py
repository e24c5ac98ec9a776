"""Two-phase publication: stage every unit, then finalize once.

If any unit fails to stage, or finalize fails, every unit staged so far is
rolled back and the session dropped, so consumers never see a release where
a module exists without the modules it depends on.
"""

from __future__ import annotations

from sdkrel.core.result import Err, Ok, Result
from sdkrel.output.console import ConsoleProtocol, Style
from sdkrel.release.errors import (
    FinalizeFailure,
    PublishError,
    RollbackOutcome,
    SigningFailure,
    StagingFailure,
)
from sdkrel.release.model import PublishReport, ReleaseRun, ReleaseUnit, SigningStatus
from sdkrel.release.repository import StagingRepository


def _check_uniform_signing(run: ReleaseRun) -> SigningFailure | None:
    if not run.signing_required:
        return None
    for unit in run.units:
        if unit.status != SigningStatus.SIGNED:
            return SigningFailure(
                module=unit.module.name,
                reason=f"unit is {unit.status.value} but signing is required",
            )
    return None


def rollback(
    repository: StagingRepository,
    session: str,
    staged: list[ReleaseUnit],
    console: ConsoleProtocol,
) -> RollbackOutcome:
    """Roll back staged units (newest first), then drop the session."""
    rolled_back: list[str] = []
    failed: list[str] = []
    messages: list[str] = []

    for unit in reversed(staged):
        result = repository.rollback(session, unit)
        if isinstance(result, Err):
            failed.append(unit.module.name)
            messages.append(f"{unit.module.name}: {result.error}")
            console.warning(f"rollback failed for {unit.module.coordinates}: {result.error}")
        else:
            rolled_back.append(unit.module.name)
            console.print(f"rolled back {unit.module.coordinates}", Style.DIM)

    dropped = repository.drop(session)
    if isinstance(dropped, Err):
        messages.append(f"drop {session}: {dropped.error}")
        console.warning(f"could not drop staging session {session}: {dropped.error}")

    return RollbackOutcome(
        rolled_back=tuple(rolled_back),
        failed=tuple(failed),
        dropped=isinstance(dropped, Ok),
        messages=tuple(messages),
    )


def publish(
    run: ReleaseRun, repository: StagingRepository, console: ConsoleProtocol
) -> Result[PublishReport, PublishError]:
    mixed = _check_uniform_signing(run)
    if mixed is not None:
        return Err(mixed)

    session = repository.open(run)
    if isinstance(session, Err):
        nothing = RollbackOutcome(rolled_back=(), failed=(), dropped=True)
        return Err(StagingFailure(module=None, reason=session.error, rollback=nothing))
    sid = session.value
    console.print(f"staging session: {sid}", Style.DIM)

    staged: list[ReleaseUnit] = []
    for unit in run.units:
        result = repository.stage(sid, unit)
        if isinstance(result, Err):
            console.error(f"staging failed for {unit.module.coordinates}: {result.error}")
            outcome = rollback(repository, sid, staged, console)
            return Err(
                StagingFailure(module=unit.module.name, reason=result.error, rollback=outcome)
            )
        staged.append(unit)
        console.success(f"staged {unit.module.coordinates}")

    finalized = repository.finalize(sid, run)
    if isinstance(finalized, Err):
        console.error(f"finalize failed: {finalized.error}")
        outcome = rollback(repository, sid, staged, console)
        return Err(FinalizeFailure(reason=finalized.error, rollback=outcome))

    console.success(f"released {run.description}")
    return Ok(
        PublishReport(
            staging_id=sid,
            staged=tuple(u.module.name for u in staged),
            repository_url=run.endpoint.url,
            finalized=True,
        )
    )
