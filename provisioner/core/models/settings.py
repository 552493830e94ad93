"""
Settings model — the validated contents of provisioner.yml.

Every filesystem location the core touches is derived from these
values.  Relative paths are resolved by the config loader against
the directory holding the settings file, so core code never looks
at the process working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

# Bundled seed files (used when the settings leave them unset)
_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_MANIFEST_TEMPLATE = _DATA_DIR / "config.xml"
DEFAULT_STATE_TEMPLATE = _DATA_DIR / "state.json"


class Settings(BaseModel):
    """Runtime configuration for the provisioner."""

    # ── Locations ────────────────────────────────────────────────
    projects_root: Path = Path("projects")
    templates_root: Path = Path(".")
    store_path: Path = Path(".state/projects.json")
    audit_path: Path = Path(".state/audit.ndjson")

    # ── Seeds ────────────────────────────────────────────────────
    manifest_template: Path = DEFAULT_MANIFEST_TEMPLATE
    state_template: Path = DEFAULT_STATE_TEMPLATE
    manifest_domain_prefix: str = "http://yourdomain/"

    # ── Behavior ─────────────────────────────────────────────────
    deployment_mode: Literal["default", "pwe"] = "default"
    step_timeout: float = Field(default=30.0, ge=0)   # 0 disables

    @property
    def support_root(self) -> Path:
        return self.projects_root / "support"

    def resolved(self, base_dir: Path) -> Settings:
        """Return a copy with every relative path anchored at *base_dir*."""
        updates = {}
        for key in (
            "projects_root",
            "templates_root",
            "store_path",
            "audit_path",
            "manifest_template",
            "state_template",
        ):
            value: Path = getattr(self, key)
            if not value.is_absolute():
                updates[key] = (base_dir / value).resolve()
        return self.model_copy(update=updates)
