"""Signing coordinator.

A unit moves ``UNSIGNED -> SIGNED`` or ``UNSIGNED -> SIGNING_FAILED``. When
signing is required a run publishes only if every unit reached ``SIGNED``.
"""

from __future__ import annotations

import os
import shutil
import tempfile
import threading
from pathlib import Path
from types import TracebackType
from typing import Protocol

from sdkrel.core.result import Err, Ok, Result
from sdkrel.output.console import ConsoleProtocol
from sdkrel.platform.process import run as run_process
from sdkrel.release.errors import SigningFailure
from sdkrel.release.model import (
    ReleaseUnit,
    SigningPolicy,
    SigningRequired,
    SigningSkipped,
    SigningStatus,
)
from sdkrel.release.timeouts import GPG_TIMEOUT_SECONDS

SIGNATURE_SUFFIX = ".asc"


class Signer(Protocol):
    def sign_file(self, path: Path, key: SigningRequired) -> Result[Path, str]:
        """Write a detached signature for ``path`` and return its location."""
        ...


def resolve_signing_policy(
    *, skip_signing: bool, key: str | None, passphrase: str | None
) -> Result[SigningPolicy, SigningFailure]:
    """Signing is required unless explicitly skipped.

    A missing key when signing is required is an error, never a silent skip.
    """
    if skip_signing:
        return Ok(SigningSkipped())
    if key is None or not key.strip():
        return Err(
            SigningFailure(
                module=None,
                reason="signing is required but no signing key was provided",
                hint="Set SDKREL_SIGNING_KEY (armored private key) or pass --skip-signing.",
            )
        )
    return Ok(SigningRequired(key=key, passphrase=passphrase or ""))


def _failed(unit: ReleaseUnit, reason: str) -> SigningFailure:
    return SigningFailure(
        module=unit.module.name,
        reason=reason,
        unit=unit.with_status(SigningStatus.SIGNING_FAILED),
    )


def sign(
    unit: ReleaseUnit, policy: SigningPolicy, signer: Signer
) -> Result[ReleaseUnit, SigningFailure]:
    if isinstance(policy, SigningSkipped):
        return Ok(unit)

    if unit.status == SigningStatus.SIGNED:
        return Ok(unit)

    if not policy.key.strip():
        return Err(_failed(unit, "signing key is empty"))

    signatures: list[Path] = []
    for path in unit.files():
        signed = signer.sign_file(path, policy)
        if isinstance(signed, Err):
            return Err(_failed(unit, f"{path.name}: {signed.error}"))
        signatures.append(signed.value)

    return Ok(unit.with_status(SigningStatus.SIGNED, signatures=tuple(signatures)))


def sign_all(
    units: tuple[ReleaseUnit, ...],
    policy: SigningPolicy,
    signer: Signer,
    console: ConsoleProtocol,
) -> Result[tuple[ReleaseUnit, ...], SigningFailure]:
    """Sign units one after another; the first failure aborts the whole run."""
    if isinstance(policy, SigningSkipped):
        console.warning(f"signing skipped ({policy.reason})")
        return Ok(units)

    out: list[ReleaseUnit] = []
    for unit in units:
        result = sign(unit, policy, signer)
        if isinstance(result, Err):
            return result
        console.success(f"signed {unit.module.coordinates}")
        out.append(result.value)
    return Ok(tuple(out))


class GpgSigner:
    """Detached ASCII-armored signatures through ``gpg``.

    The key is imported from memory into a private temporary keyring on first
    use; the keyring is removed by ``close()``. Calls are serialized.
    """

    def __init__(self, *, gpg: str = "gpg", timeout: float = GPG_TIMEOUT_SECONDS) -> None:
        self._gpg = gpg
        self._timeout = timeout
        self._home: Path | None = None
        self._imported_key: str | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> GpgSigner:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._home is not None:
                shutil.rmtree(self._home, ignore_errors=True)
            self._home = None
            self._imported_key = None

    def _env(self, home: Path) -> dict[str, str]:
        env = dict(os.environ)
        env["GNUPGHOME"] = str(home)
        return env

    def _ensure_key(self, key: SigningRequired) -> Result[Path, str]:
        if self._home is not None and self._imported_key == key.key:
            return Ok(self._home)

        if self._home is None:
            self._home = Path(tempfile.mkdtemp(prefix="sdkrel-gnupg-"))
            self._home.chmod(0o700)

        imported = run_process(
            [self._gpg, "--batch", "--yes", "--import"],
            cwd=self._home,
            env=self._env(self._home),
            timeout=self._timeout,
            input_text=key.key,
        )
        if isinstance(imported, Err):
            return Err(f"key import failed: {imported.error.stderr.strip() or imported.error}")
        self._imported_key = key.key
        return Ok(self._home)

    def sign_file(self, path: Path, key: SigningRequired) -> Result[Path, str]:
        with self._lock:
            home = self._ensure_key(key)
            if isinstance(home, Err):
                return home

            out = path.with_name(path.name + SIGNATURE_SUFFIX)
            result = run_process(
                [
                    self._gpg,
                    "--batch",
                    "--yes",
                    "--pinentry-mode",
                    "loopback",
                    "--passphrase-fd",
                    "0",
                    "--armor",
                    "--detach-sign",
                    "--output",
                    str(out),
                    str(path),
                ],
                cwd=path.parent,
                env=self._env(home.value),
                timeout=self._timeout,
                input_text=key.passphrase + "\n",
            )
            if isinstance(result, Err):
                return Err(result.error.stderr.strip() or str(result.error))
            return Ok(out)
