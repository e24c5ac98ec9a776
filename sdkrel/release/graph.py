from __future__ import annotations

from sdkrel.core.result import Err, Ok, Result
from sdkrel.release.errors import CyclicDependency, DuplicateModule, GraphError, UnknownDependency
from sdkrel.release.model import Module


def umbrella_module(
    *, name: str, group: str, version: str, path: str, members: tuple[Module, ...]
) -> Module:
    """Aggregate module with an explicit edge to every member."""
    return Module(
        name=name,
        group=group,
        version=version,
        path=path,
        depends_on=tuple(m.name for m in members),
        is_umbrella=True,
    )


def resolve_modules(
    modules: tuple[Module, ...], umbrella: Module
) -> Result[tuple[Module, ...], GraphError]:
    """Order modules so every module follows all of its dependencies.

    Ties keep declaration order. The umbrella must come last; since it depends
    on every member, any member depending back on it is reported as a cycle.
    """
    declared = (*modules, umbrella)
    by_name: dict[str, Module] = {}
    for m in declared:
        if m.name in by_name:
            return Err(DuplicateModule(name=m.name))
        by_name[m.name] = m

    for m in declared:
        for dep in m.depends_on:
            if dep not in by_name:
                return Err(UnknownDependency(module=m.name, dependency=dep))

    missing = [m.name for m in modules if m.name not in umbrella.depends_on]
    if missing:
        return Err(UnknownDependency(module=umbrella.name, dependency=missing[0]))

    remaining: dict[str, set[str]] = {m.name: set(m.depends_on) for m in declared}
    order: list[Module] = []

    while remaining:
        ready = [m for m in declared if m.name in remaining and not remaining[m.name]]
        if not ready:
            return Err(CyclicDependency(cycle=_find_cycle(remaining)))
        for m in ready:
            del remaining[m.name]
            order.append(m)
        for deps in remaining.values():
            deps.difference_update(m.name for m in ready)

    return Ok(tuple(order))


def _find_cycle(remaining: dict[str, set[str]]) -> tuple[str, ...]:
    # Every node left has an unresolved dependency, so walking edges from any
    # node must revisit one; the revisited suffix is the cycle.
    start = min(remaining)
    path: list[str] = []
    seen: dict[str, int] = {}
    node = start
    while node not in seen:
        seen[node] = len(path)
        path.append(node)
        node = min(remaining[node])
    cycle = path[seen[node] :]
    return (*cycle, node)
