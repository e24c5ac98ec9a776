from __future__ import annotations

from pathlib import Path

from sdkrel.core.result import Err, Ok, Result
from sdkrel.output.console import ConsoleProtocol, Style
from sdkrel.release.assembler import Assembler
from sdkrel.release.config import ReleaseConfig, validate_version
from sdkrel.release.errors import ReleaseError
from sdkrel.release.graph import resolve_modules
from sdkrel.release.model import (
    PublishReport,
    ReleaseRun,
    RepositoryEndpoint,
    SigningPolicy,
)
from sdkrel.release.publisher import publish
from sdkrel.release.repository import StagingRepository
from sdkrel.release.signing import Signer, sign_all

DRY_RUN_SESSION = "(dry-run)"


def plan_run(
    config: ReleaseConfig,
    *,
    version: str,
    policy: SigningPolicy,
    endpoint: RepositoryEndpoint,
    work_dir: Path,
) -> Result[ReleaseRun, ReleaseError]:
    """Validate inputs and resolve the module order; no artifact work yet."""
    valid = validate_version(version)
    if isinstance(valid, Err):
        return valid

    members, umbrella = config.modules_for(valid.value)
    order = resolve_modules(members, umbrella)
    if isinstance(order, Err):
        return order

    return Ok(
        ReleaseRun(
            version=valid.value,
            project=config.project,
            modules=order.value,
            policy=policy,
            endpoint=endpoint,
            work_dir=work_dir,
        )
    )


def run_release(
    run: ReleaseRun,
    *,
    assembler: Assembler,
    signer: Signer,
    repository: StagingRepository,
    console: ConsoleProtocol,
    dry_run: bool,
) -> Result[PublishReport, ReleaseError]:
    """Assemble, sign and publish ``run``; any stage failure aborts the run."""
    console.header(f"Assemble {run.description}")
    units = assembler.assemble_all(run)
    if isinstance(units, Err):
        return units

    console.header("Sign")
    signed = sign_all(units.value, run.policy, signer, console)
    if isinstance(signed, Err):
        return signed
    run = run.with_units(signed.value)

    if dry_run:
        console.header("Publish (dry-run)")
        for unit in run.units:
            console.print(f"would stage {unit.module.coordinates}", Style.DIM)
        return Ok(
            PublishReport(
                staging_id=DRY_RUN_SESSION,
                staged=(),
                repository_url=run.endpoint.url,
                finalized=False,
            )
        )

    console.header(f"Publish to {run.endpoint.url}")
    return publish(run, repository, console)
