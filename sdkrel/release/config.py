"""Typed loading of ``release.toml``.

The file declares the project metadata shared by every publication, the
member modules with their dependency edges, the umbrella module, how each
artifact kind is produced and where releases go.
"""

from __future__ import annotations

import re
import string
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from sdkrel.core.result import Err, Ok, Result
from sdkrel.core.structured import (
    StrDict,
    as_str_dict,
    get_float,
    get_int,
    get_str,
    get_str_list,
    get_table,
    get_tables,
)
from sdkrel.release.errors import ConfigError
from sdkrel.release.graph import umbrella_module
from sdkrel.release.model import (
    ArtifactKind,
    Developer,
    License,
    Module,
    ProjectMetadata,
    Scm,
)
from sdkrel.release.timeouts import TOOLCHAIN_TIMEOUT_SECONDS

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_REPOSITORY_URL",
    "ModuleDecl",
    "ToolStep",
    "ToolchainConfig",
    "RepositoryConfig",
    "ReleaseConfig",
    "load_release_config",
    "validate_version",
]

CONFIG_FILENAME = "release.toml"

DEFAULT_REPOSITORY_URL = "https://s01.oss.sonatype.org/service/local/"
DEFAULT_WORKERS = 4

# Names a toolchain command or output template may reference.
TEMPLATE_PLACEHOLDERS = frozenset({"name", "path", "version", "group", "task_prefix"})

_VERSION_RE = re.compile(r"^[0-9A-Za-z][0-9A-Za-z.+\-]*$")

DEFAULT_STEPS: dict[ArtifactKind, tuple[tuple[str, ...], str]] = {
    ArtifactKind.BINARY: (
        ("./gradlew", "{task_prefix}jar", "-Pversion={version}"),
        "{path}/build/libs/{name}-{version}.jar",
    ),
    ArtifactKind.SOURCES: (
        ("./gradlew", "{task_prefix}sourcesJar", "-Pversion={version}"),
        "{path}/build/libs/{name}-{version}-sources.jar",
    ),
    ArtifactKind.DOCUMENTATION: (
        ("./gradlew", "{task_prefix}javadocJar", "-Pversion={version}"),
        "{path}/build/libs/{name}-{version}-javadoc.jar",
    ),
}


@dataclass(frozen=True, slots=True)
class ModuleDecl:
    name: str
    path: str
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ToolStep:
    """How one artifact kind is produced: a command and where its output lands."""

    command: tuple[str, ...]
    output: str


def _default_steps() -> dict[ArtifactKind, ToolStep]:
    return {kind: ToolStep(command=cmd, output=out) for kind, (cmd, out) in DEFAULT_STEPS.items()}


@dataclass(frozen=True, slots=True)
class ToolchainConfig:
    workers: int = DEFAULT_WORKERS
    timeout: float = TOOLCHAIN_TIMEOUT_SECONDS
    steps: dict[ArtifactKind, ToolStep] = field(default_factory=_default_steps)


@dataclass(frozen=True, slots=True)
class RepositoryConfig:
    url: str = DEFAULT_REPOSITORY_URL
    staging_profile_id: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    root: Path
    project: ProjectMetadata
    modules: tuple[ModuleDecl, ...]
    umbrella: ModuleDecl
    toolchain: ToolchainConfig = field(default_factory=ToolchainConfig)
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)

    def modules_for(self, version: str) -> tuple[tuple[Module, ...], Module]:
        """Materialize declared modules for one release version."""
        group = self.project.group
        members = tuple(
            Module(
                name=d.name,
                group=group,
                version=version,
                path=d.path,
                depends_on=d.depends_on,
            )
            for d in self.modules
        )
        umbrella = umbrella_module(
            name=self.umbrella.name,
            group=group,
            version=version,
            path=self.umbrella.path,
            members=members,
        )
        return members, umbrella


def validate_version(version: str) -> Result[str, ConfigError]:
    v = version.strip()
    if not v:
        return Err(ConfigError("release version is empty"))
    if not _VERSION_RE.match(v):
        return Err(ConfigError(f"invalid release version: {version!r}"))
    if v.upper().endswith("-SNAPSHOT"):
        return Err(
            ConfigError(
                f"snapshot versions cannot be staged: {v}",
                hint="Release a fixed version (e.g. 1.2.0).",
            )
        )
    return Ok(v)


def _parse_project(data: Mapping[str, object], path: Path) -> Result[ProjectMetadata, ConfigError]:
    project: StrDict = get_table(data, "project") or {}
    name = get_str(project, "name")
    group = get_str(project, "group")
    if name is None or group is None:
        return Err(ConfigError("[project] requires 'name' and 'group'", path=path))

    url = get_str(project, "url") or ""
    lic: StrDict = get_table(data, "license") or {}
    license_name = get_str(lic, "name")
    license_url = get_str(lic, "url")
    if license_name is None or license_url is None:
        return Err(ConfigError("[license] requires 'name' and 'url'", path=path))

    developers: list[Developer] = []
    for i, dev in enumerate(get_tables(data, "developers") or []):
        dev_id = get_str(dev, "id")
        dev_name = get_str(dev, "name")
        if dev_id is None or dev_name is None:
            return Err(ConfigError(f"developers[{i}] requires 'id' and 'name'", path=path))
        developers.append(Developer(id=dev_id, name=dev_name, email=get_str(dev, "email") or ""))
    if not developers:
        return Err(ConfigError("at least one [[developers]] entry is required", path=path))

    scm: StrDict = get_table(data, "scm") or {}
    scm_url = get_str(scm, "url") or url
    connection = get_str(scm, "connection")
    if connection is None or not scm_url:
        return Err(ConfigError("[scm] requires 'connection' and 'url'", path=path))

    return Ok(
        ProjectMetadata(
            name=name,
            group=group,
            description=get_str(project, "description") or f"{name} SDK",
            url=url or scm_url,
            inception_year=get_str(project, "inception_year") or "",
            licenses=(License(name=license_name, url=license_url),),
            developers=tuple(developers),
            scm=Scm(
                connection=connection,
                developer_connection=get_str(scm, "developer_connection") or connection,
                url=scm_url,
            ),
        )
    )


def _parse_modules(
    data: Mapping[str, object], path: Path, project_name: str
) -> Result[tuple[tuple[ModuleDecl, ...], ModuleDecl], ConfigError]:
    tables = get_tables(data, "modules")
    if not tables:
        return Err(ConfigError("at least one [[modules]] entry is required", path=path))

    modules: list[ModuleDecl] = []
    for i, table in enumerate(tables):
        name = get_str(table, "name")
        if name is None:
            return Err(ConfigError(f"modules[{i}] requires 'name'", path=path))
        deps = get_str_list(table, "depends_on")
        if deps is None and "depends_on" in table:
            return Err(ConfigError(f"modules[{i}].depends_on must be a list of names", path=path))
        modules.append(
            ModuleDecl(
                name=name,
                path=get_str(table, "path") or name,
                depends_on=tuple(d.strip() for d in deps or []),
            )
        )

    umbrella: StrDict = get_table(data, "umbrella") or {}
    return Ok(
        (
            tuple(modules),
            ModuleDecl(
                name=get_str(umbrella, "name") or project_name,
                path=get_str(umbrella, "path") or ".",
            ),
        )
    )


def _template_error(template: str) -> str | None:
    try:
        fields = [f for _, f, _, _ in string.Formatter().parse(template) if f is not None]
    except ValueError as e:
        return f"malformed template {template!r}: {e}"
    for name in fields:
        if name not in TEMPLATE_PLACEHOLDERS:
            allowed = ", ".join(sorted(TEMPLATE_PLACEHOLDERS))
            return f"unknown placeholder {{{name}}} in {template!r} (allowed: {allowed})"
    return None


def _parse_toolchain(
    data: Mapping[str, object], path: Path
) -> Result[ToolchainConfig, ConfigError]:
    table: StrDict = get_table(data, "toolchain") or {}
    workers = get_int(table, "workers")
    if workers is None:
        workers = DEFAULT_WORKERS
    elif workers < 1:
        return Err(ConfigError("toolchain.workers must be >= 1", path=path))

    steps = _default_steps()
    for kind in ArtifactKind:
        step = get_table(table, kind.value)
        if step is None:
            continue
        command = get_str_list(step, "command")
        output = get_str(step, "output")
        if not command or output is None:
            return Err(
                ConfigError(
                    f"[toolchain.{kind.value}] requires 'command' (list) and 'output'",
                    path=path,
                )
            )
        for template in (*command, output):
            problem = _template_error(template)
            if problem is not None:
                return Err(ConfigError(f"[toolchain.{kind.value}] {problem}", path=path))
        steps[kind] = ToolStep(command=tuple(command), output=output)

    return Ok(
        ToolchainConfig(
            workers=workers,
            timeout=get_float(table, "timeout") or TOOLCHAIN_TIMEOUT_SECONDS,
            steps=steps,
        )
    )


def _read_toml(path: Path) -> Result[StrDict, ConfigError]:
    try:
        data = as_str_dict(tomllib.loads(path.read_bytes().decode("utf-8")))
    except FileNotFoundError:
        return Err(ConfigError(f"config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"error reading config: {e}", path=path))
    if data is None:
        return Err(ConfigError("config root must be a TOML table", path=path))
    return Ok(data)


def load_release_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load ``release.toml``.

    Args:
        path: Path to the config file; its directory is the project root.

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure.
    """
    data = _read_toml(path)
    if isinstance(data, Err):
        return data

    project = _parse_project(data.value, path)
    if isinstance(project, Err):
        return project

    modules = _parse_modules(data.value, path, project.value.name)
    if isinstance(modules, Err):
        return modules

    toolchain = _parse_toolchain(data.value, path)
    if isinstance(toolchain, Err):
        return toolchain

    repo: StrDict = get_table(data.value, "repository") or {}
    members, umbrella = modules.value
    return Ok(
        ReleaseConfig(
            root=path.resolve().parent,
            project=project.value,
            modules=members,
            umbrella=umbrella,
            toolchain=toolchain.value,
            repository=RepositoryConfig(
                url=get_str(repo, "url") or DEFAULT_REPOSITORY_URL,
                staging_profile_id=get_str(repo, "staging_profile_id"),
            ),
        )
    )
