from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from pathlib import Path
from typing import TypeAlias


class ArtifactKind(StrEnum):
    BINARY = "binary"
    SOURCES = "sources"
    DOCUMENTATION = "documentation"


REQUIRED_KINDS: frozenset[ArtifactKind] = frozenset(ArtifactKind)

# Maven classifier per kind; the binary is the unclassified main artifact.
CLASSIFIERS: dict[ArtifactKind, str | None] = {
    ArtifactKind.BINARY: None,
    ArtifactKind.SOURCES: "sources",
    ArtifactKind.DOCUMENTATION: "javadoc",
}


class SigningStatus(StrEnum):
    UNSIGNED = "unsigned"
    SIGNED = "signed"
    SIGNING_FAILED = "signing-failed"


@dataclass(frozen=True, slots=True)
class Module:
    """A releasable unit of the SDK.

    ``version`` is the release version and is identical for every module of
    one run. ``path`` is the module directory relative to the project root.
    The umbrella aggregates every member and is published under the bare
    project name.
    """

    name: str
    group: str
    version: str
    path: str
    depends_on: tuple[str, ...] = ()
    artifact_kinds: frozenset[ArtifactKind] = REQUIRED_KINDS
    is_umbrella: bool = False

    @property
    def coordinates(self) -> str:
        return f"{self.group}:{self.name}:{self.version}"


@dataclass(frozen=True, slots=True)
class License:
    name: str
    url: str


@dataclass(frozen=True, slots=True)
class Developer:
    id: str
    name: str
    email: str


@dataclass(frozen=True, slots=True)
class Scm:
    connection: str
    developer_connection: str
    url: str


@dataclass(frozen=True, slots=True)
class ProjectMetadata:
    """Constant metadata shared by every publication of the project."""

    name: str
    group: str
    description: str
    url: str
    inception_year: str
    licenses: tuple[License, ...]
    developers: tuple[Developer, ...]
    scm: Scm


@dataclass(frozen=True, slots=True)
class PublicationDescriptor:
    group_id: str
    artifact_id: str
    version: str
    name: str
    description: str
    packaging: str
    url: str
    inception_year: str
    licenses: tuple[License, ...]
    developers: tuple[Developer, ...]
    scm: Scm

    @property
    def pom_filename(self) -> str:
        return f"{self.artifact_id}-{self.version}.pom"


@dataclass(frozen=True, slots=True)
class Artifact:
    kind: ArtifactKind
    path: Path
    classifier: str | None
    extension: str = "jar"

    def remote_filename(self, artifact_id: str, version: str) -> str:
        suffix = f"-{self.classifier}" if self.classifier else ""
        return f"{artifact_id}-{version}{suffix}.{self.extension}"


@dataclass(frozen=True, slots=True)
class ReleaseUnit:
    module: Module
    artifacts: tuple[Artifact, ...]
    descriptor: PublicationDescriptor
    descriptor_path: Path
    signatures: tuple[Path, ...] = ()
    status: SigningStatus = SigningStatus.UNSIGNED

    def files(self) -> tuple[Path, ...]:
        """Local files that make up the unit, descriptor last."""
        return (*(a.path for a in self.artifacts), self.descriptor_path)

    def with_status(
        self, status: SigningStatus, *, signatures: tuple[Path, ...] = ()
    ) -> ReleaseUnit:
        return replace(self, status=status, signatures=signatures)


@dataclass(frozen=True, slots=True)
class SigningRequired:
    """Sign every unit with in-memory OpenPGP key material."""

    key: str = field(repr=False)
    passphrase: str = field(default="", repr=False)


@dataclass(frozen=True, slots=True)
class SigningSkipped:
    """Explicit opt-out of signing for this run."""

    reason: str = "--skip-signing"


SigningPolicy: TypeAlias = SigningRequired | SigningSkipped


@dataclass(frozen=True, slots=True)
class RepositoryEndpoint:
    url: str
    staging_profile_id: str | None = None
    username: str | None = None
    password: str | None = field(default=None, repr=False)

    @property
    def is_local(self) -> bool:
        return self.url.startswith("file://")


@dataclass(frozen=True, slots=True)
class ReleaseRun:
    """One publish invocation.

    ``modules`` is the resolved topological order (umbrella last). ``units``
    is filled once assembly and signing are done, in the same order.
    """

    version: str
    project: ProjectMetadata
    modules: tuple[Module, ...]
    policy: SigningPolicy
    endpoint: RepositoryEndpoint
    work_dir: Path
    units: tuple[ReleaseUnit, ...] = ()

    @property
    def signing_required(self) -> bool:
        return isinstance(self.policy, SigningRequired)

    @property
    def description(self) -> str:
        return f"{self.project.group}:{self.project.name}:{self.version}"

    def with_units(self, units: tuple[ReleaseUnit, ...]) -> ReleaseRun:
        return replace(self, units=units)


@dataclass(frozen=True, slots=True)
class PublishReport:
    staging_id: str
    staged: tuple[str, ...]
    repository_url: str
    finalized: bool
