"""
Manifest generator — config.xml for web projects.

Reads a widget manifest template, rewrites the fields that identify
the application, and serializes the result:

    <widget id="{domain prefix}{name}">
        <tizen:application id="{package}.{name}" package="{package}"
                           required_version="{version}"/>
        <name>{name}</name>
        <tizen:profile name="{profile}"/>
    </widget>

Everything else in the template is carried over unchanged.  The widget
and ``tizen`` namespaces are registered with ElementTree once, at
import, so the output keeps ``tizen:`` rather than ``ns0:``.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from provisioner.adapters.filesystem import FilesystemProvisioner
from provisioner.core.errors import ManifestParseError
from provisioner.core.services.naming import package_id

logger = logging.getLogger(__name__)

WIDGET_NS = "http://www.w3.org/ns/widgets"
TIZEN_NS = "http://tizen.org/ns/widgets"

# Process-wide ElementTree prefix map
ET.register_namespace("", WIDGET_NS)
ET.register_namespace("tizen", TIZEN_NS)


def _namespace_of(tag: str) -> str:
    if tag.startswith("{"):
        return tag[1:].partition("}")[0]
    return ""


def _local_name(tag: str) -> str:
    return tag.rpartition("}")[2]


def _qualified(ns: str, local: str) -> str:
    return f"{{{ns}}}{local}" if ns else local


def _require(parent: ET.Element, tag: str, label: str) -> ET.Element:
    element = parent.find(tag)
    if element is None:
        raise ManifestParseError(f"Manifest template has no <{label}> element")
    return element


def render_manifest(
    template: bytes,
    *,
    project_id: str,
    name: str,
    version: str,
    profile: str,
    domain_prefix: str = "http://yourdomain/",
) -> bytes:
    """Fill *template* with the project's identity.

    Raises:
        ManifestParseError: The template is not well-formed XML, is
            not a ``<widget>`` document, or lacks a required element.
    """
    try:
        root = ET.fromstring(template)
    except ET.ParseError as e:
        raise ManifestParseError(f"Cannot parse manifest template: {e}") from e

    if _local_name(root.tag) != "widget":
        raise ManifestParseError(
            f"Manifest root must be <widget>, got <{_local_name(root.tag)}>"
        )

    widget_ns = _namespace_of(root.tag)
    name_el = _require(root, _qualified(widget_ns, "name"), "name")
    application = _require(root, _qualified(TIZEN_NS, "application"), "tizen:application")
    profile_el = _require(root, _qualified(TIZEN_NS, "profile"), "tizen:profile")

    package = package_id(project_id)

    name_el.text = name
    application.set("package", package)
    application.set("id", f"{package}.{name}")
    application.set("required_version", version)
    root.set("id", f"{domain_prefix}{name}")
    profile_el.set("name", profile)

    return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


class ManifestGenerator:
    """Writes config.xml into a project directory from a template file."""

    def __init__(
        self,
        template_path: Path,
        domain_prefix: str = "http://yourdomain/",
        fs: FilesystemProvisioner | None = None,
    ):
        self._template_path = template_path
        self._domain_prefix = domain_prefix
        self._fs = fs or FilesystemProvisioner()

    def write(
        self,
        target: Path,
        *,
        project_id: str,
        name: str,
        version: str,
        profile: str,
    ) -> None:
        """Render the manifest and write it to *target*."""
        template = self._fs.read_bytes(self._template_path)
        xml = render_manifest(
            template,
            project_id=project_id,
            name=name,
            version=version,
            profile=profile,
            domain_prefix=self._domain_prefix,
        )
        self._fs.write_bytes(target, xml)
        logger.info("Manifest written: %s (package=%s)", target, package_id(project_id))
