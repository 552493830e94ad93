"""
Tests for configuration loading — provisioner.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from provisioner.core.config.loader import ConfigError, find_settings_file, load_settings
from provisioner.core.models.settings import DEFAULT_MANIFEST_TEMPLATE, DEFAULT_STATE_TEMPLATE


@pytest.fixture
def settings_yml(tmp_path: Path) -> Path:
    """Create a provisioner.yml in a temp directory."""
    content = textwrap.dedent("""\
        projects_root: data/projects
        templates_root: /opt/templates
        store_path: data/projects.json
        manifest_domain_prefix: "https://apps.example.com/"
        deployment_mode: pwe
        step_timeout: 5
    """)
    path = tmp_path / "provisioner.yml"
    path.write_text(content)
    return path


class TestLoadSettings:
    def test_values(self, settings_yml: Path):
        settings = load_settings(settings_yml)
        assert settings.deployment_mode == "pwe"
        assert settings.step_timeout == 5
        assert settings.manifest_domain_prefix == "https://apps.example.com/"

    def test_relative_paths_anchor_at_file(self, settings_yml: Path):
        settings = load_settings(settings_yml)
        base = settings_yml.parent.resolve()
        assert settings.projects_root == base / "data" / "projects"
        assert settings.store_path == base / "data" / "projects.json"
        assert settings.support_root == base / "data" / "projects" / "support"

    def test_absolute_paths_kept(self, settings_yml: Path):
        assert load_settings(settings_yml).templates_root == Path("/opt/templates")

    def test_bundled_seeds_by_default(self, settings_yml: Path):
        settings = load_settings(settings_yml)
        assert settings.manifest_template == DEFAULT_MANIFEST_TEMPLATE
        assert settings.state_template == DEFAULT_STATE_TEMPLATE
        assert settings.manifest_template.is_file()
        assert settings.state_template.is_file()

    def test_null_seed_means_bundled(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("manifest_template: null\n")
        assert load_settings(path).manifest_template == DEFAULT_MANIFEST_TEMPLATE

    def test_wrapped_under_key(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("provisioner:\n  deployment_mode: pwe\n")
        assert load_settings(path).deployment_mode == "pwe"

    def test_empty_file_is_defaults(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("")
        settings = load_settings(path)
        assert settings.projects_root == tmp_path.resolve() / "projects"
        assert settings.deployment_mode == "default"

    def test_no_file_uses_base_dir(self, tmp_path: Path):
        settings = load_settings(None, base_dir=tmp_path)
        assert settings.projects_root == tmp_path.resolve() / "projects"

    def test_no_file_no_base(self):
        with pytest.raises(ConfigError):
            load_settings(None)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("projects_root: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)

    def test_bad_deployment_mode(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("deployment_mode: cloud\n")
        with pytest.raises(ConfigError, match="Invalid provisioner configuration"):
            load_settings(path)

    def test_negative_timeout(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("step_timeout: -1\n")
        with pytest.raises(ConfigError):
            load_settings(path)


class TestFindSettingsFile:
    def test_finds_in_parent(self, settings_yml: Path):
        nested = settings_yml.parent / "a" / "b"
        nested.mkdir(parents=True)
        assert find_settings_file(nested) == settings_yml.resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_settings_file(tmp_path) is None
