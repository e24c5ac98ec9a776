from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import replace

from sdkrel.core.result import Err, Ok
from sdkrel.release.descriptor import build_descriptor, publication_name, render_pom
from sdkrel.release.errors import DescriptorInvalid
from sdkrel.release.graph import umbrella_module

from ._fakes import GROUP, VERSION, module, project, sdk_modules

_NS = {"m": "http://maven.apache.org/POM/4.0.0"}


def test_descriptor_identity_matches_module() -> None:
    result = build_descriptor(module("protocol"), VERSION, project())

    assert isinstance(result, Ok)
    d = result.value
    assert (d.group_id, d.artifact_id, d.version) == (GROUP, "protocol", VERSION)
    assert d.packaging == "jar"
    assert d.name == "tbdex-protocol"
    assert d.description == "tbdex kotlin SDK"
    assert d.developers[0].id == "TBD54566975"


def test_umbrella_publication_name_is_project_name() -> None:
    _, umbrella = sdk_modules()
    assert publication_name(umbrella, project()) == "tbdex"
    assert publication_name(module("httpserver"), project()) == "tbdex-httpserver"


def test_umbrella_is_named_by_role_not_by_name() -> None:
    members, _ = sdk_modules()
    umbrella = umbrella_module(name="sdk", group=GROUP, version=VERSION, path=".", members=members)

    assert publication_name(umbrella, project()) == "tbdex"
    assert publication_name(module("tbdex"), project()) == "tbdex-tbdex"


def test_build_descriptor_is_idempotent() -> None:
    first = build_descriptor(module("httpclient", "protocol"), VERSION, project())
    second = build_descriptor(module("httpclient", "protocol"), VERSION, project())

    assert isinstance(first, Ok) and isinstance(second, Ok)
    assert first.value == second.value
    assert render_pom(first.value) == render_pom(second.value)


def test_version_mismatch_is_rejected() -> None:
    result = build_descriptor(module("protocol", version="1.1.0"), VERSION, project())

    assert isinstance(result, Err)
    assert result.error.field == "version"


def test_empty_identity_is_rejected() -> None:
    result = build_descriptor(module(" "), VERSION, project())

    assert isinstance(result, Err)
    assert result.error == DescriptorInvalid(module=" ", field="artifact_id", reason="empty")


def test_group_must_match_project() -> None:
    other = replace(module("protocol"), group="com.example")
    result = build_descriptor(other, VERSION, project())

    assert isinstance(result, Err)
    assert result.error.field == "group_id"


def test_render_pom_has_required_metadata_blocks() -> None:
    result = build_descriptor(module("protocol"), VERSION, project())
    assert isinstance(result, Ok)
    pom = render_pom(result.value)

    assert pom.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
    root = ET.fromstring(pom)

    def text(path: str) -> str | None:
        node = root.find(path, _NS)
        return None if node is None else node.text

    assert text("m:modelVersion") == "4.0.0"
    assert text("m:groupId") == GROUP
    assert text("m:artifactId") == "protocol"
    assert text("m:version") == VERSION
    assert text("m:packaging") == "jar"
    assert text("m:inceptionYear") == "2023"
    assert text("m:licenses/m:license/m:name") == "The Apache License, Version 2.0"
    assert text("m:developers/m:developer/m:email") == "tbd-releases@tbd.email"
    assert text("m:scm/m:connection") == "scm:git:git@github.com:leordev/tbdex-kt-releases.git"
    assert text("m:scm/m:developerConnection") == (
        "scm:git:ssh:git@github.com:leordev/tbdex-kt-releases.git"
    )


def test_render_pom_escapes_text() -> None:
    metadata = replace(project(), description="a < b & c")
    result = build_descriptor(module("protocol"), VERSION, metadata)
    assert isinstance(result, Ok)

    pom = render_pom(result.value)
    assert "a &lt; b &amp; c" in pom
