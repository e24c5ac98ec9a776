"""Publication descriptors (Maven POM metadata).

One template serves member modules and the umbrella alike, so two builds with
the same inputs always produce the same descriptor and the same POM bytes.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from sdkrel.core.result import Err, Ok, Result
from sdkrel.release.errors import DescriptorInvalid
from sdkrel.release.model import Module, ProjectMetadata, PublicationDescriptor

__all__ = ["build_descriptor", "render_pom", "publication_name"]

_PACKAGING = "jar"

_POM_NS = "http://maven.apache.org/POM/4.0.0"
_XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
_POM_XSD = "https://maven.apache.org/xsd/maven-4.0.0.xsd"


def publication_name(module: Module, project: ProjectMetadata) -> str:
    """``tbdex-protocol`` for members, ``tbdex`` for the umbrella."""
    if module.is_umbrella:
        return project.name
    return f"{project.name}-{module.name}"


def build_descriptor(
    module: Module, release_version: str, metadata: ProjectMetadata
) -> Result[PublicationDescriptor, DescriptorInvalid]:
    identity = {
        "group_id": module.group,
        "artifact_id": module.name,
        "version": release_version,
    }
    for key, value in identity.items():
        if not value.strip():
            return Err(DescriptorInvalid(module=module.name, field=key, reason="empty"))

    if module.version != release_version:
        return Err(
            DescriptorInvalid(
                module=module.name,
                field="version",
                reason=f"module version {module.version} != release version {release_version}",
            )
        )
    if module.group != metadata.group:
        return Err(
            DescriptorInvalid(
                module=module.name,
                field="group_id",
                reason=f"module group {module.group} != project group {metadata.group}",
            )
        )

    return Ok(
        PublicationDescriptor(
            group_id=module.group,
            artifact_id=module.name,
            version=release_version,
            name=publication_name(module, metadata),
            description=metadata.description,
            packaging=_PACKAGING,
            url=metadata.url,
            inception_year=metadata.inception_year,
            licenses=metadata.licenses,
            developers=metadata.developers,
            scm=metadata.scm,
        )
    )


def _text(parent: ET.Element, tag: str, value: str) -> None:
    ET.SubElement(parent, tag).text = value


def render_pom(descriptor: PublicationDescriptor) -> str:
    project = ET.Element(
        "project",
        {
            "xmlns": _POM_NS,
            "xmlns:xsi": _XSI_NS,
            "xsi:schemaLocation": f"{_POM_NS} {_POM_XSD}",
        },
    )
    _text(project, "modelVersion", "4.0.0")
    _text(project, "groupId", descriptor.group_id)
    _text(project, "artifactId", descriptor.artifact_id)
    _text(project, "version", descriptor.version)
    _text(project, "packaging", descriptor.packaging)
    _text(project, "name", descriptor.name)
    _text(project, "description", descriptor.description)
    _text(project, "url", descriptor.url)
    _text(project, "inceptionYear", descriptor.inception_year)

    licenses = ET.SubElement(project, "licenses")
    for lic in descriptor.licenses:
        node = ET.SubElement(licenses, "license")
        _text(node, "name", lic.name)
        _text(node, "url", lic.url)

    developers = ET.SubElement(project, "developers")
    for dev in descriptor.developers:
        node = ET.SubElement(developers, "developer")
        _text(node, "id", dev.id)
        _text(node, "name", dev.name)
        _text(node, "email", dev.email)

    scm = ET.SubElement(project, "scm")
    _text(scm, "connection", descriptor.scm.connection)
    _text(scm, "developerConnection", descriptor.scm.developer_connection)
    _text(scm, "url", descriptor.scm.url)

    ET.indent(project, space="  ")
    body = ET.tostring(project, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'
