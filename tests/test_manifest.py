"""
Tests for the manifest generator — config.xml rendering.
"""

import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from provisioner.core.errors import FilesystemError, ManifestParseError
from provisioner.core.models.settings import DEFAULT_MANIFEST_TEMPLATE
from provisioner.core.services.manifest import TIZEN_NS, ManifestGenerator, render_manifest

W3C_NS = "http://www.w3.org/ns/widgets"
PROJECT_ID = "65f0c0ffee00112233445566"


def _render(template: bytes | None = None, **overrides) -> bytes:
    kwargs = dict(project_id=PROJECT_ID, name="App", version="2.4.0", profile="wearable")
    kwargs.update(overrides)
    if template is None:
        template = DEFAULT_MANIFEST_TEMPLATE.read_bytes()
    return render_manifest(template, **kwargs)


class TestRenderManifest:
    def test_declaration(self):
        xml = _render()
        assert xml.startswith(b"<?xml version='1.0' encoding='UTF-8'?>")

    def test_fields_rewritten(self):
        root = ET.fromstring(_render())
        app = root.find(f"{{{TIZEN_NS}}}application")
        assert app is not None
        assert app.get("package") == "65f0c0ffee"
        assert app.get("id") == "65f0c0ffee.App"
        assert app.get("required_version") == "2.4.0"
        assert root.get("id") == "http://yourdomain/App"
        assert root.find(f"{{{W3C_NS}}}name").text == "App"
        assert root.find(f"{{{TIZEN_NS}}}profile").get("name") == "wearable"

    def test_serialized_attributes(self):
        xml = _render()
        assert b'required_version="2.4.0"' in xml
        assert b'<tizen:profile name="wearable"' in xml

    def test_prefixes_preserved(self):
        xml = _render()
        assert b"xmlns:tizen=" in xml
        assert b"ns0:" not in xml

    def test_render_leaves_prefix_map_alone(self, monkeypatch):
        def fail(prefix, uri):
            raise AssertionError(f"registered {prefix}={uri}")

        monkeypatch.setattr(ET, "register_namespace", fail)
        assert b"<tizen:profile" in _render()

    def test_template_prefix_normalized(self):
        template = (
            b'<widget xmlns="http://www.w3.org/ns/widgets" '
            b'xmlns:tz="http://tizen.org/ns/widgets">'
            b'<tz:application id="a" package="b" required_version="1"/>'
            b'<name>x</name><tz:profile name="mobile"/></widget>'
        )
        assert b"<tizen:profile" in _render(template)
        assert b"<tizen:profile" in _render()

    def test_other_elements_kept(self):
        root = ET.fromstring(_render())
        content = root.find(f"{{{W3C_NS}}}content")
        assert content is not None
        assert content.get("src") == "index.html"

    def test_custom_domain_prefix(self):
        root = ET.fromstring(_render(domain_prefix="https://apps.example.com/"))
        assert root.get("id") == "https://apps.example.com/App"

    def test_malformed_template(self):
        with pytest.raises(ManifestParseError, match="Cannot parse"):
            _render(b"<widget><name>")

    def test_wrong_root(self):
        with pytest.raises(ManifestParseError, match="<widget>"):
            _render(b"<config/>")

    def test_missing_application(self):
        template = (
            b'<widget xmlns="http://www.w3.org/ns/widgets" '
            b'xmlns:tizen="http://tizen.org/ns/widgets">'
            b'<name>x</name><tizen:profile name="mobile"/></widget>'
        )
        with pytest.raises(ManifestParseError, match="tizen:application"):
            _render(template)

    def test_missing_name(self):
        template = (
            b'<widget xmlns:tizen="http://tizen.org/ns/widgets">'
            b'<tizen:application id="a" package="b" required_version="1"/>'
            b'<tizen:profile name="mobile"/></widget>'
        )
        with pytest.raises(ManifestParseError, match="<name>"):
            _render(template)

    def test_template_without_default_namespace(self):
        template = (
            b'<widget xmlns:tizen="http://tizen.org/ns/widgets" id="x">'
            b'<tizen:application id="a" package="b" required_version="1"/>'
            b'<name>x</name><tizen:profile name="mobile"/></widget>'
        )
        root = ET.fromstring(_render(template))
        assert root.find("name").text == "App"


class TestManifestGenerator:
    def test_write(self, tmp_path: Path):
        target = tmp_path / "project" / "config.xml"
        ManifestGenerator(DEFAULT_MANIFEST_TEMPLATE).write(
            target, project_id=PROJECT_ID, name="App", version="2.4.0", profile="wearable",
        )
        assert b'required_version="2.4.0"' in target.read_bytes()

    def test_missing_template(self, tmp_path: Path):
        generator = ManifestGenerator(tmp_path / "missing.xml")
        with pytest.raises(FilesystemError):
            generator.write(
                tmp_path / "config.xml",
                project_id=PROJECT_ID, name="App", version="1", profile="mobile",
            )
        assert not (tmp_path / "config.xml").exists()
