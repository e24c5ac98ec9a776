"""Remote artifact repositories with a staging area.

Staging is provisional: nothing is visible to consumers until ``finalize``.
Staged units can be rolled back one by one and a whole session dropped.
"""

from __future__ import annotations

import shutil
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote
from uuid import uuid4

from sdkrel.core.result import Err, Ok, Result
from sdkrel.core.structured import as_obj_list, as_str_dict, get_str
from sdkrel.output.console import ConsoleProtocol, Style
from sdkrel.platform.files import atomic_write_bytes
from sdkrel.platform.http import HttpClient, RealHttpClient
from sdkrel.release.checksums import checksum_files
from sdkrel.release.model import ReleaseRun, ReleaseUnit, RepositoryEndpoint
from sdkrel.release.signing import SIGNATURE_SUFFIX
from sdkrel.release.timeouts import (
    HTTP_TIMEOUT_SECONDS,
    STAGING_POLL_DELAY_SECONDS,
    STAGING_TRANSITION_TIMEOUT_SECONDS,
)

__all__ = [
    "StagingRepository",
    "Upload",
    "unit_uploads",
    "NexusStagingRepository",
    "FileRepository",
    "MockStagingRepository",
    "create_repository",
]


class StagingRepository(Protocol):
    def open(self, run: ReleaseRun) -> Result[str, str]:
        """Open a staging session and return its id."""
        ...

    def stage(self, session: str, unit: ReleaseUnit) -> Result[None, str]: ...

    def rollback(self, session: str, unit: ReleaseUnit) -> Result[None, str]:
        """Remove everything ``stage`` uploaded for ``unit``."""
        ...

    def finalize(self, session: str, run: ReleaseRun) -> Result[None, str]:
        """Make the staged release public. Irrevocable."""
        ...

    def drop(self, session: str) -> Result[None, str]: ...


# -----------------------------------------------------------------------------
# Repository layout
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Upload:
    remote_path: str
    data: bytes


def _unit_dir(unit: ReleaseUnit) -> str:
    d = unit.descriptor
    return f"{d.group_id.replace('.', '/')}/{d.artifact_id}/{d.version}"


def _remote_files(unit: ReleaseUnit) -> list[tuple[str, Path]]:
    d = unit.descriptor
    files = [(a.remote_filename(d.artifact_id, d.version), a.path) for a in unit.artifacts]
    files.append((d.pom_filename, unit.descriptor_path))
    # Signatures are produced in the same order as ReleaseUnit.files().
    signed = [(name + SIGNATURE_SUFFIX, sig) for (name, _), sig in zip(files, unit.signatures)]
    return files + signed


def unit_uploads(unit: ReleaseUnit) -> Iterator[Upload]:
    """Every file of the unit plus its checksums, in Maven layout.

    Raises:
        OSError: A local file cannot be read.
    """
    base = _unit_dir(unit)
    for name, path in _remote_files(unit):
        yield Upload(remote_path=f"{base}/{name}", data=path.read_bytes())
        for algo, digest in checksum_files(path).items():
            yield Upload(remote_path=f"{base}/{name}.{algo}", data=digest.encode("ascii"))


def _content_type(remote_path: str) -> str:
    if remote_path.endswith(".pom"):
        return "application/xml"
    if remote_path.endswith(".jar"):
        return "application/java-archive"
    return "text/plain"


# -----------------------------------------------------------------------------
# Nexus staging (Maven Central)
# -----------------------------------------------------------------------------


class NexusStagingRepository:
    """Nexus 2 staging REST API, as used by OSSRH / Maven Central."""

    def __init__(
        self,
        *,
        http: HttpClient,
        endpoint: RepositoryEndpoint,
        console: ConsoleProtocol,
        transition_timeout: float = STAGING_TRANSITION_TIMEOUT_SECONDS,
        poll_delay: float = STAGING_POLL_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._http = http
        self._endpoint = endpoint
        self._base = endpoint.url.rstrip("/") + "/"
        self._console = console
        self._transition_timeout = transition_timeout
        self._poll_delay = poll_delay
        self._sleep = sleep

    def _url(self, path: str) -> str:
        return self._base + path

    def _deploy_url(self, session: str, remote_path: str) -> str:
        return self._url(f"staging/deployByRepositoryId/{quote(session)}/{remote_path}")

    def _profile_id(self, group: str) -> Result[str, str]:
        if self._endpoint.staging_profile_id:
            return Ok(self._endpoint.staging_profile_id)

        result = self._http.get_json(self._url("staging/profiles"))
        if isinstance(result, Err):
            return Err(f"cannot list staging profiles: {result.error}")

        # The profile for com.acme.sdk may be registered as com.acme.
        best: tuple[int, str] | None = None
        for item in as_obj_list(result.value.get("data")) or []:
            profile = as_str_dict(item)
            if profile is None:
                continue
            name = get_str(profile, "name")
            pid = get_str(profile, "id")
            if name is None or pid is None:
                continue
            if group == name or group.startswith(name + "."):
                if best is None or len(name) > best[0]:
                    best = (len(name), pid)
        if best is None:
            return Err(f"no staging profile matches group {group}")
        return Ok(best[1])

    def open(self, run: ReleaseRun) -> Result[str, str]:
        profile = self._profile_id(run.project.group)
        if isinstance(profile, Err):
            return profile

        url = self._url(f"staging/profiles/{quote(profile.value)}/start")
        result = self._http.post_json(url, {"data": {"description": run.description}})
        if isinstance(result, Err):
            return Err(f"cannot open staging repository: {result.error}")

        data = as_str_dict(result.value.get("data")) or {}
        staged_id = get_str(data, "stagedRepositoryId")
        if staged_id is None:
            return Err("staging response has no stagedRepositoryId")
        return Ok(staged_id)

    def stage(self, session: str, unit: ReleaseUnit) -> Result[None, str]:
        try:
            uploads = list(unit_uploads(unit))
        except OSError as e:
            return Err(f"cannot read unit files: {e}")

        for upload in uploads:
            url = self._deploy_url(session, upload.remote_path)
            result = self._http.put_bytes(url, upload.data, _content_type(upload.remote_path))
            if isinstance(result, Err):
                return Err(str(result.error))
        return Ok(None)

    def rollback(self, session: str, unit: ReleaseUnit) -> Result[None, str]:
        try:
            uploads = list(unit_uploads(unit))
        except OSError as e:
            return Err(f"cannot read unit files: {e}")

        failed: list[str] = []
        for upload in uploads:
            result = self._http.delete(self._deploy_url(session, upload.remote_path))
            # Already absent means the upload never landed.
            if isinstance(result, Err) and result.error.status != 404:
                failed.append(upload.remote_path)
        if failed:
            return Err(f"could not delete {len(failed)} file(s), first: {failed[0]}")
        return Ok(None)

    def _bulk(self, action: str, session: str, description: str) -> Result[None, str]:
        payload: dict[str, Any] = {
            "data": {"stagedRepositoryIds": [session], "description": description}
        }
        if action == "promote":
            payload["data"]["autoDropAfterRelease"] = True
        result = self._http.post_json(self._url(f"staging/bulk/{action}"), payload)
        if isinstance(result, Err):
            return Err(f"{action} failed: {result.error}")
        return Ok(None)

    def _wait_transition(self, session: str) -> Result[str | None, str]:
        """Poll until the repository stops transitioning; returns its type.

        None means the repository no longer exists (released and dropped).
        """
        url = self._url(f"staging/repository/{quote(session)}")
        waited = 0.0
        while True:
            result = self._http.get_json(url)
            if isinstance(result, Err):
                if result.error.status == 404:
                    return Ok(None)
                return Err(f"cannot query staging repository: {result.error}")
            if result.value.get("transitioning") is not True:
                return Ok(get_str(result.value, "type"))
            if waited >= self._transition_timeout:
                return Err(f"staging repository {session} still transitioning after {waited:.0f}s")
            self._sleep(self._poll_delay)
            waited += self._poll_delay

    def finalize(self, session: str, run: ReleaseRun) -> Result[None, str]:
        closed = self._bulk("close", session, run.description)
        if isinstance(closed, Err):
            return closed
        self._console.print(f"closing {session} ...", Style.DIM)
        state = self._wait_transition(session)
        if isinstance(state, Err):
            return state
        if state.value != "closed":
            return Err(f"staging repository {session} did not close (state: {state.value})")

        released = self._bulk("promote", session, run.description)
        if isinstance(released, Err):
            return released
        self._console.print(f"releasing {session} ...", Style.DIM)
        state = self._wait_transition(session)
        if isinstance(state, Err):
            return state
        if state.value not in (None, "released"):
            return Err(f"staging repository {session} was not released (state: {state.value})")
        return Ok(None)

    def drop(self, session: str) -> Result[None, str]:
        return self._bulk("drop", session, "dropped after failed release")


# -----------------------------------------------------------------------------
# Local directory (file:// endpoints)
# -----------------------------------------------------------------------------


class FileRepository:
    """Maven layout in a local directory; staging lives in ``.staging/<id>``."""

    def __init__(self, root: Path) -> None:
        self._root = root
        # Published files a failed finalize could not take back, per session.
        self._orphaned: dict[str, list[Path]] = {}

    @classmethod
    def from_url(cls, url: str) -> FileRepository:
        return cls(Path(url.removeprefix("file://")).expanduser())

    def _session_dir(self, session: str) -> Path:
        return self._root / ".staging" / session

    def open(self, run: ReleaseRun) -> Result[str, str]:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
        session = f"{run.version}-{stamp}-{uuid4().hex[:8]}"
        try:
            self._session_dir(session).mkdir(parents=True)
        except OSError as e:
            return Err(f"cannot create staging directory: {e}")
        return Ok(session)

    def stage(self, session: str, unit: ReleaseUnit) -> Result[None, str]:
        base = self._session_dir(session)
        try:
            for upload in unit_uploads(unit):
                atomic_write_bytes(base / upload.remote_path, upload.data)
        except OSError as e:
            return Err(str(e))
        return Ok(None)

    def rollback(self, session: str, unit: ReleaseUnit) -> Result[None, str]:
        target = self._session_dir(session) / _unit_dir(unit)
        try:
            if target.exists():
                shutil.rmtree(target)
        except OSError as e:
            return Err(str(e))
        return Ok(None)

    def finalize(self, session: str, run: ReleaseRun) -> Result[None, str]:
        base = self._session_dir(session)
        files = sorted(p for p in base.rglob("*") if p.is_file())
        existing = [p for p in files if (self._root / p.relative_to(base)).exists()]
        if existing:
            return Err(f"already released: {existing[0].relative_to(base)}")
        moved: list[Path] = []
        try:
            for path in files:
                dest = self._root / path.relative_to(base)
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(path, dest)
                moved.append(dest)
        except OSError as e:
            leftover = _unpublish(moved)
            if leftover:
                self._orphaned[session] = leftover
                return Err(f"{e}; {len(leftover)} published file(s) could not be removed")
            return Err(str(e))
        shutil.rmtree(base, ignore_errors=True)
        return Ok(None)

    def drop(self, session: str) -> Result[None, str]:
        try:
            shutil.rmtree(self._session_dir(session), ignore_errors=False)
        except FileNotFoundError:
            pass
        except OSError as e:
            return Err(str(e))
        orphaned = self._orphaned.get(session)
        if orphaned:
            rel = orphaned[0].relative_to(self._root)
            return Err(f"{len(orphaned)} file(s) left in the public layout, first: {rel}")
        return Ok(None)


def _unpublish(paths: list[Path]) -> list[Path]:
    """Delete already-published files; returns the ones that could not be removed."""
    leftover: list[Path] = []
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            leftover.append(path)
    return leftover


# -----------------------------------------------------------------------------
# Testing
# -----------------------------------------------------------------------------


class MockStagingRepository:
    """Records calls; failures are injected per module or per operation.

    Usage:
        repo = MockStagingRepository(fail_stage={"httpserver"})
        publish(run, repo, console)
        assert ("finalize",) not in repo.calls
    """

    def __init__(
        self,
        *,
        fail_open: bool = False,
        fail_stage: set[str] | None = None,
        fail_rollback: set[str] | None = None,
        fail_finalize: bool = False,
        fail_drop: bool = False,
    ) -> None:
        self.fail_open = fail_open
        self.fail_stage = fail_stage or set()
        self.fail_rollback = fail_rollback or set()
        self.fail_finalize = fail_finalize
        self.fail_drop = fail_drop
        self.calls: list[tuple[str, ...]] = []
        self.staged: list[str] = []

    def open(self, run: ReleaseRun) -> Result[str, str]:
        self.calls.append(("open",))
        if self.fail_open:
            return Err("open failed (mock)")
        return Ok("mock-1")

    def stage(self, session: str, unit: ReleaseUnit) -> Result[None, str]:
        self.calls.append(("stage", unit.module.name))
        if unit.module.name in self.fail_stage:
            return Err("HTTP 500: upload rejected (mock)")
        self.staged.append(unit.module.name)
        return Ok(None)

    def rollback(self, session: str, unit: ReleaseUnit) -> Result[None, str]:
        self.calls.append(("rollback", unit.module.name))
        if unit.module.name in self.fail_rollback:
            return Err("delete failed (mock)")
        self.staged.remove(unit.module.name)
        return Ok(None)

    def finalize(self, session: str, run: ReleaseRun) -> Result[None, str]:
        self.calls.append(("finalize",))
        if self.fail_finalize:
            return Err("close failed: rule evaluation (mock)")
        return Ok(None)

    def drop(self, session: str) -> Result[None, str]:
        self.calls.append(("drop",))
        if self.fail_drop:
            return Err("drop failed (mock)")
        return Ok(None)

    def count(self, op: str) -> int:
        return sum(1 for c in self.calls if c[0] == op)


def create_repository(
    endpoint: RepositoryEndpoint, console: ConsoleProtocol
) -> StagingRepository:
    if endpoint.is_local:
        return FileRepository.from_url(endpoint.url)
    http = RealHttpClient(
        timeout=HTTP_TIMEOUT_SECONDS,
        username=endpoint.username,
        password=endpoint.password,
    )
    return NexusStagingRepository(http=http, endpoint=endpoint, console=console)
