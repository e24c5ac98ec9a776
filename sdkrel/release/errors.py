"""Error payloads for every release stage.

Each stage returns its own union so callers can exhaustively ``match``;
``ReleaseError`` is the union surfaced by the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from sdkrel.release.model import ArtifactKind, ReleaseUnit


@dataclass(frozen=True, slots=True)
class ConfigError:
    message: str
    path: Path | None = None
    hint: str | None = None


# -----------------------------------------------------------------------------
# Module graph
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CyclicDependency:
    cycle: tuple[str, ...]

    def pretty(self) -> str:
        return " -> ".join(self.cycle)


@dataclass(frozen=True, slots=True)
class UnknownDependency:
    module: str
    dependency: str


@dataclass(frozen=True, slots=True)
class DuplicateModule:
    name: str


GraphError = CyclicDependency | UnknownDependency | DuplicateModule


# -----------------------------------------------------------------------------
# Assembly / descriptor / signing
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AssemblyFailure:
    module: str
    reason: str
    kind: ArtifactKind | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class DescriptorInvalid:
    module: str
    field: str
    reason: str


@dataclass(frozen=True, slots=True)
class SigningFailure:
    """Signing could not be applied.

    ``module`` is None when the failure is about the policy itself (e.g. no
    key material provided) rather than a specific unit.
    """

    module: str | None
    reason: str
    hint: str | None = None
    unit: ReleaseUnit | None = field(default=None, repr=False)


# -----------------------------------------------------------------------------
# Publication
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RollbackOutcome:
    rolled_back: tuple[str, ...]
    failed: tuple[str, ...]
    dropped: bool
    messages: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        """The staging session is gone; per-unit failures are informational once dropped."""
        return self.dropped


@dataclass(frozen=True, slots=True)
class StagingFailure:
    """Staging failed; ``module`` is None when the session could not be opened."""

    module: str | None
    reason: str
    rollback: RollbackOutcome


@dataclass(frozen=True, slots=True)
class FinalizeFailure:
    reason: str
    rollback: RollbackOutcome


PublishError = StagingFailure | FinalizeFailure | SigningFailure


ReleaseError = (
    ConfigError
    | CyclicDependency
    | UnknownDependency
    | DuplicateModule
    | AssemblyFailure
    | DescriptorInvalid
    | SigningFailure
    | StagingFailure
    | FinalizeFailure
)
