from __future__ import annotations

import random

from sdkrel.core.result import Err, Ok
from sdkrel.release.errors import CyclicDependency, DuplicateModule, UnknownDependency
from sdkrel.release.graph import resolve_modules, umbrella_module
from sdkrel.release.model import Module

from ._fakes import GROUP, VERSION, module, sdk_modules


def _umbrella(members: tuple[Module, ...]) -> Module:
    return umbrella_module(name="tbdex", group=GROUP, version=VERSION, path=".", members=members)


def _names(order: tuple[Module, ...]) -> list[str]:
    return [m.name for m in order]


def _assert_topological(order: tuple[Module, ...]) -> None:
    position = {m.name: i for i, m in enumerate(order)}
    for m in order:
        for dep in m.depends_on:
            assert position[dep] < position[m.name], f"{dep} must precede {m.name}"


def test_independent_modules_put_umbrella_last() -> None:
    members = (module("protocol"), module("httpclient"), module("httpserver"))
    result = resolve_modules(members, _umbrella(members))

    assert isinstance(result, Ok)
    names = _names(result.value)
    assert names[-1] == "tbdex"
    assert set(names[:3]) == {"protocol", "httpclient", "httpserver"}


def test_dependencies_precede_dependents() -> None:
    members, umbrella = sdk_modules()
    result = resolve_modules(members, umbrella)

    assert isinstance(result, Ok)
    assert _names(result.value) == ["protocol", "httpclient", "httpserver", "tbdex"]


def test_order_is_stable_with_respect_to_declaration() -> None:
    members = (
        module("httpserver", "protocol"),
        module("httpclient", "protocol"),
        module("protocol"),
    )
    result = resolve_modules(members, _umbrella(members))

    assert isinstance(result, Ok)
    assert _names(result.value) == ["protocol", "httpserver", "httpclient", "tbdex"]


def test_random_acyclic_graphs_resolve_topologically() -> None:
    rng = random.Random(1234)
    for _ in range(50):
        count = rng.randint(1, 8)
        names = [f"m{i}" for i in range(count)]
        members = [
            module(name, *(d for d in names[:i] if rng.random() < 0.4))
            for i, name in enumerate(names)
        ]
        rng.shuffle(members)
        declared = tuple(members)

        result = resolve_modules(declared, _umbrella(declared))

        assert isinstance(result, Ok)
        _assert_topological(result.value)
        assert result.value[-1].name == "tbdex"
        assert len(result.value) == count + 1


def test_cycle_is_reported_with_its_path() -> None:
    members = (module("a", "c"), module("b", "a"), module("c", "b"), module("d"))
    result = resolve_modules(members, _umbrella(members))

    assert isinstance(result, Err)
    assert isinstance(result.error, CyclicDependency)
    cycle = result.error.cycle
    assert cycle[0] == cycle[-1]
    assert set(cycle) == {"a", "b", "c"}


def test_self_dependency_is_a_cycle() -> None:
    members = (module("protocol", "protocol"),)
    result = resolve_modules(members, _umbrella(members))

    assert isinstance(result, Err)
    assert result.error == CyclicDependency(cycle=("protocol", "protocol"))


def test_member_depending_on_umbrella_is_a_cycle() -> None:
    members = (module("protocol"), module("httpclient", "tbdex"))
    result = resolve_modules(members, _umbrella(members))

    assert isinstance(result, Err)
    assert isinstance(result.error, CyclicDependency)
    assert "tbdex" in result.error.cycle


def test_unknown_dependency_is_rejected() -> None:
    members = (module("httpclient", "protokol"),)
    result = resolve_modules(members, _umbrella(members))

    assert isinstance(result, Err)
    assert result.error == UnknownDependency(module="httpclient", dependency="protokol")


def test_duplicate_names_are_rejected() -> None:
    members = (module("protocol"), module("protocol"))
    result = resolve_modules(members, _umbrella(members[:1]))

    assert isinstance(result, Err)
    assert result.error == DuplicateModule(name="protocol")


def test_umbrella_must_depend_on_every_member() -> None:
    members = (module("protocol"), module("httpclient"))
    partial = _umbrella(members[:1])
    result = resolve_modules(members, partial)

    assert isinstance(result, Err)
    assert result.error == UnknownDependency(module="tbdex", dependency="httpclient")


def test_umbrella_module_has_explicit_edges() -> None:
    members, umbrella = sdk_modules()
    assert umbrella.depends_on == ("protocol", "httpclient", "httpserver")
    assert umbrella.version == VERSION
