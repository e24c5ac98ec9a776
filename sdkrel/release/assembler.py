"""Assembly of release units.

A unit is the module's binary, sources and documentation bundles copied into
the run's work directory under their Maven file names, plus the rendered POM.
"""

from __future__ import annotations

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

from sdkrel.core.result import Err, Ok, Result
from sdkrel.output.console import ConsoleProtocol, Style
from sdkrel.platform.files import atomic_write_text, copy_file, reset_dir
from sdkrel.release.config import DEFAULT_WORKERS
from sdkrel.release.descriptor import build_descriptor, render_pom
from sdkrel.release.errors import AssemblyFailure, DescriptorInvalid
from sdkrel.release.model import (
    CLASSIFIERS,
    REQUIRED_KINDS,
    Artifact,
    ArtifactKind,
    Module,
    ReleaseRun,
    ReleaseUnit,
)
from sdkrel.release.toolchain import Toolchain

AssemblyError = AssemblyFailure | DescriptorInvalid

_CANCELLED = "cancelled after another module failed"


class Assembler:
    def __init__(
        self,
        *,
        toolchain: Toolchain,
        console: ConsoleProtocol,
        workers: int = DEFAULT_WORKERS,
    ) -> None:
        self._toolchain = toolchain
        self._console = console
        self._workers = max(1, workers)

    def unit_dir(self, run: ReleaseRun, module: Module) -> Path:
        return run.work_dir / module.name

    def assemble(
        self,
        module: Module,
        run: ReleaseRun,
        cancel: threading.Event | None = None,
    ) -> Result[ReleaseUnit, AssemblyError]:
        """Build one module's release unit.

        Every artifact kind is mandatory: a module that cannot produce its
        documentation bundle fails here instead of publishing a partial unit.
        """
        missing = sorted(k.value for k in REQUIRED_KINDS - module.artifact_kinds)
        if missing:
            return Err(
                AssemblyFailure(
                    module=module.name,
                    reason=f"module does not produce: {', '.join(missing)}",
                )
            )

        descriptor = build_descriptor(module, run.version, run.project)
        if isinstance(descriptor, Err):
            return descriptor

        try:
            target = reset_dir(self.unit_dir(run, module))
        except OSError as e:
            return Err(AssemblyFailure(module=module.name, reason=f"cannot prepare {e}"))

        artifacts: list[Artifact] = []
        for kind in ArtifactKind:
            if cancel is not None and cancel.is_set():
                return Err(AssemblyFailure(module=module.name, reason=_CANCELLED, kind=kind))

            produced = self._toolchain.produce(module, kind)
            if isinstance(produced, Err):
                e = produced.error
                return Err(
                    AssemblyFailure(module=module.name, reason=e.reason, kind=kind, hint=e.hint)
                )

            artifact = Artifact(kind=kind, path=produced.value, classifier=CLASSIFIERS[kind])
            filename = artifact.remote_filename(module.name, run.version)
            try:
                copied = copy_file(produced.value, target / filename)
            except OSError as e:
                return Err(
                    AssemblyFailure(module=module.name, reason=f"copy failed: {e}", kind=kind)
                )
            artifacts.append(Artifact(kind=kind, path=copied, classifier=artifact.classifier))

        pom_path = target / descriptor.value.pom_filename
        try:
            atomic_write_text(pom_path, render_pom(descriptor.value))
        except OSError as e:
            return Err(AssemblyFailure(module=module.name, reason=f"cannot write POM: {e}"))

        self._console.success(f"assembled {module.coordinates}")
        return Ok(
            ReleaseUnit(
                module=module,
                artifacts=tuple(artifacts),
                descriptor=descriptor.value,
                descriptor_path=pom_path,
            )
        )

    def assemble_all(
        self, run: ReleaseRun, cancel: threading.Event | None = None
    ) -> Result[tuple[ReleaseUnit, ...], AssemblyError]:
        """Assemble every module of the run on a bounded worker pool.

        A module is submitted once all of its dependencies are assembled. The
        first failure stops scheduling, cancels queued work and discards every
        unit built so far. Running modules see ``cancel`` set and stop before
        their next artifact kind.
        """
        pending = list(run.modules)
        done: dict[str, ReleaseUnit] = {}
        in_flight: dict[Future[Result[ReleaseUnit, AssemblyError]], Module] = {}
        if cancel is None:
            cancel = threading.Event()
        failure: AssemblyError | None = None

        with ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="assemble") as pool:
            while pending or in_flight:
                for module in list(pending):
                    if len(in_flight) >= self._workers:
                        break
                    if all(dep in done for dep in module.depends_on):
                        pending.remove(module)
                        in_flight[pool.submit(self.assemble, module, run, cancel)] = module

                if not in_flight:
                    # Only reachable with an unresolved graph.
                    failure = AssemblyFailure(
                        module=pending[0].name, reason="dependencies were never assembled"
                    )
                    break

                finished, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in finished:
                    module = in_flight.pop(future)
                    result = future.result()
                    if isinstance(result, Err):
                        if failure is None:
                            failure = result.error
                    else:
                        done[module.name] = result.value

                if failure is not None:
                    cancel.set()
                    for future in in_flight:
                        future.cancel()
                    break

        if failure is not None:
            skipped = [m.name for m in pending]
            if skipped:
                self._console.print(f"not assembled: {', '.join(skipped)}", Style.DIM)
            return Err(failure)

        return Ok(tuple(done[m.name] for m in run.modules))
