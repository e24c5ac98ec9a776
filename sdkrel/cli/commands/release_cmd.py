from __future__ import annotations

import os
from pathlib import Path
from typing import NoReturn

import typer

from sdkrel.cli.context import build_context
from sdkrel.core.result import Err
from sdkrel.output.console import ConsoleProtocol
from sdkrel.output.errors import print_release_error, release_exit_code
from sdkrel.release.assembler import Assembler
from sdkrel.release.config import CONFIG_FILENAME, ReleaseConfig
from sdkrel.release.descriptor import build_descriptor, publication_name, render_pom
from sdkrel.release.errors import ConfigError, ReleaseError
from sdkrel.release.model import PublishReport, ReleaseRun, RepositoryEndpoint, SigningSkipped
from sdkrel.release.repository import create_repository
from sdkrel.release.service import plan_run, run_release
from sdkrel.release.signing import GpgSigner, resolve_signing_policy
from sdkrel.release.toolchain import CommandToolchain

ENV_SIGNING_KEY = "SDKREL_SIGNING_KEY"
ENV_SIGNING_PASSWORD = "SDKREL_SIGNING_PASSWORD"
ENV_REPOSITORY_USERNAME = "SDKREL_REPOSITORY_USERNAME"
ENV_REPOSITORY_PASSWORD = "SDKREL_REPOSITORY_PASSWORD"

_CONFIG_OPTION = typer.Option(Path(CONFIG_FILENAME), "--config", help="Path to release.toml")


def _fail(error: ReleaseError, console: ConsoleProtocol) -> NoReturn:
    print_release_error(error, console)
    raise typer.Exit(code=release_exit_code(error))


def _endpoint(config: ReleaseConfig, repository: str | None) -> RepositoryEndpoint:
    return RepositoryEndpoint(
        url=repository or config.repository.url,
        staging_profile_id=config.repository.staging_profile_id,
        username=os.environ.get(ENV_REPOSITORY_USERNAME),
        password=os.environ.get(ENV_REPOSITORY_PASSWORD),
    )


def _print_plan(run: ReleaseRun, console: ConsoleProtocol) -> None:
    rows = [
        (
            str(i),
            m.name,
            m.coordinates,
            publication_name(m, run.project),
            ", ".join(m.depends_on) or "-",
        )
        for i, m in enumerate(run.modules, start=1)
    ]
    console.table(
        f"Release plan {run.description}",
        ("#", "module", "coordinates", "publication", "depends on"),
        rows,
    )


def _print_report(report: PublishReport, console: ConsoleProtocol) -> None:
    console.table(
        "Publish report",
        ("staging", "repository", "modules", "finalized"),
        [
            (
                report.staging_id,
                report.repository_url,
                ", ".join(report.staged) or "-",
                "yes" if report.finalized else "no",
            )
        ],
    )


def release(
    version: str = typer.Argument(..., help="Release version shared by every module"),
    repository: str | None = typer.Option(
        None,
        "--repository",
        help="Nexus URL or file:///dir (default: [repository].url)",
        show_default=False,
    ),
    skip_signing: bool = typer.Option(
        False, "--skip-signing", help="Publish without signatures (signing is on by default)"
    ),
    config_path: Path = _CONFIG_OPTION,
    work_dir: Path | None = typer.Option(
        None, "--work-dir", help="Where release units are assembled", show_default=False
    ),
    workers: int | None = typer.Option(
        None, "--workers", min=1, help="Parallel assembly workers", show_default=False
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Assemble and sign, but do not stage or finalize"
    ),
    no_build: bool = typer.Option(
        False, "--no-build", help="Use existing build outputs; do not run the toolchain"
    ),
) -> None:
    """Assemble, sign, stage and finalize every module as one release."""
    ctx = build_context(config_path)
    config = ctx.config
    console = ctx.console

    policy = resolve_signing_policy(
        skip_signing=skip_signing,
        key=os.environ.get(ENV_SIGNING_KEY),
        passphrase=os.environ.get(ENV_SIGNING_PASSWORD),
    )
    if isinstance(policy, Err):
        _fail(policy.error, console)

    endpoint = _endpoint(config, repository)
    if not endpoint.is_local and not dry_run and endpoint.username is None:
        _fail(
            ConfigError(
                f"no credentials for {endpoint.url}",
                hint=f"Set {ENV_REPOSITORY_USERNAME} and {ENV_REPOSITORY_PASSWORD}.",
            ),
            console,
        )

    run = plan_run(
        config,
        version=version,
        policy=policy.value,
        endpoint=endpoint,
        work_dir=(work_dir or config.root / "build" / "release").resolve(),
    )
    if isinstance(run, Err):
        _fail(run.error, console)
    _print_plan(run.value, console)

    toolchain = CommandToolchain(
        root=config.root, config=config.toolchain, console=console, skip_build=no_build
    )
    assembler = Assembler(
        toolchain=toolchain,
        console=console,
        workers=workers or config.toolchain.workers,
    )
    with GpgSigner() as signer:
        result = run_release(
            run.value,
            assembler=assembler,
            signer=signer,
            repository=create_repository(endpoint, console),
            console=console,
            dry_run=dry_run,
        )

    if isinstance(result, Err):
        _fail(result.error, console)
    _print_report(result.value, console)


def plan(
    version: str = typer.Argument(..., help="Release version"),
    config_path: Path = _CONFIG_OPTION,
) -> None:
    """Show the module order and publication identities without building."""
    ctx = build_context(config_path)
    run = plan_run(
        ctx.config,
        version=version,
        policy=SigningSkipped(reason="plan only"),
        endpoint=_endpoint(ctx.config, None),
        work_dir=ctx.config.root / "build" / "release",
    )
    if isinstance(run, Err):
        _fail(run.error, ctx.console)
    _print_plan(run.value, ctx.console)


def pom(
    module: str = typer.Argument(..., help="Module name (or the umbrella name)"),
    version: str = typer.Argument(..., help="Release version"),
    config_path: Path = _CONFIG_OPTION,
) -> None:
    """Print the POM that would be published for a module."""
    ctx = build_context(config_path)
    members, umbrella = ctx.config.modules_for(version)
    found = next((m for m in (*members, umbrella) if m.name == module), None)
    if found is None:
        known = ", ".join(m.name for m in (*members, umbrella))
        _fail(ConfigError(f"unknown module: {module}", hint=f"Known: {known}"), ctx.console)

    descriptor = build_descriptor(found, version, ctx.config.project)
    if isinstance(descriptor, Err):
        _fail(descriptor.error, ctx.console)
    typer.echo(render_pom(descriptor.value), nl=False)
