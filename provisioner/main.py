"""
Project Provisioner — CLI entrypoint.

Usage:
    python -m provisioner.main --help
    python -m provisioner.main config check
    python -m provisioner.main project list --owner alice
    python -m provisioner.main web
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from provisioner import __version__
from provisioner.core.observability.logging_config import resolve_level, setup_logging


def _load_settings(ctx: click.Context):  # type: ignore[no-untyped-def]
    """Resolve settings from --config, or search upward from the cwd."""
    from provisioner.core.config.loader import ConfigError, find_settings_file, load_settings

    config_path: Path | None = ctx.obj.get("config_path")
    if config_path is None:
        config_path = find_settings_file(Path.cwd())
    try:
        return load_settings(config_path, base_dir=Path.cwd())
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _service(ctx: click.Context):  # type: ignore[no-untyped-def]
    from provisioner.core.use_cases.projects import build_service

    return build_service(_load_settings(ctx))


def _fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="provisioner")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to provisioner.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Project Provisioner — create and manage project workspaces."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get("PROV_LOG_FILE"),
        log_file_level=os.environ.get("PROV_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


# ── config ──────────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Provisioner configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate provisioner.yml and show the resolved locations."""
    settings = _load_settings(ctx)
    problems = []
    if not settings.manifest_template.is_file():
        problems.append(f"Manifest template not found: {settings.manifest_template}")
    if not settings.state_template.is_file():
        problems.append(f"State template not found: {settings.state_template}")

    if as_json:
        click.echo(json.dumps({
            "valid": not problems,
            "errors": problems,
            "settings": settings.model_dump(mode="json"),
        }, indent=2))
        sys.exit(0 if not problems else 1)

    if problems:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for problem in problems:
            click.echo(f"   • {problem}")
        click.echo()
        sys.exit(1)

    click.secho("✅ Configuration is valid", fg="green", bold=True)
    click.echo(f"   Projects:  {settings.projects_root}")
    click.echo(f"   Templates: {settings.templates_root}")
    click.echo(f"   Store:     {settings.store_path}")
    click.echo(f"   Mode:      {settings.deployment_mode}")
    click.echo()


# ── project ─────────────────────────────────────────────────────────


@cli.group()
def project() -> None:
    """Create, inspect, update and delete projects."""


_owner_option = click.option("--owner", required=True, help="Owner id.")
_json_option = click.option(
    "--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.",
)


@project.command("list")
@_owner_option
@_json_option
@click.pass_context
def project_list(ctx: click.Context, owner: str, as_json: bool) -> None:
    """List an owner's projects."""
    from provisioner.core.errors import ProvisioningError
    from provisioner.core.models.project import Owner

    try:
        projects = _service(ctx).list_projects(Owner(id=owner))
    except ProvisioningError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps([p.model_dump(mode="json") for p in projects], indent=2))
        return

    if not projects:
        click.echo("No projects.")
        return

    for p in projects:
        click.secho(f"   • {p.name} ", fg="cyan", nl=False)
        click.echo(f"[{p.type or '-'}] {p.id}")


@project.command("show")
@click.argument("project_id")
@_owner_option
@click.pass_context
def project_show(ctx: click.Context, project_id: str, owner: str) -> None:
    """Show one project as JSON."""
    from provisioner.core.errors import ProvisioningError
    from provisioner.core.models.project import Owner

    try:
        record = _service(ctx).get_project(Owner(id=owner), project_id)
    except ProvisioningError as e:
        _fail(str(e))
    click.echo(json.dumps(record.model_dump(mode="json"), indent=2))


@project.command("create")
@click.argument("name")
@_owner_option
@click.option("--external-id", default="", help="Owner's external id (pwe mode).")
@click.option("--description", default="", help="Project description.")
@click.option("--format", "fmt", default="", help="Template format folder.")
@click.option("--type", "project_type", default="", help="Project type (e.g. web).")
@click.option("--profile", default="", help="Target profile.")
@click.option("--version", "project_version", default="", help="Required platform version.")
@click.option("--template", "template_name", default="", help="Template to copy.")
@click.pass_context
def project_create(
    ctx: click.Context,
    name: str,
    owner: str,
    external_id: str,
    description: str,
    fmt: str,
    project_type: str,
    profile: str,
    project_version: str,
    template_name: str,
) -> None:
    """Provision a new project."""
    from provisioner.core.errors import ProvisioningError
    from provisioner.core.models.project import Owner

    data = {
        "name": name,
        "description": description,
        "format": fmt,
        "profile": profile,
        "version": project_version,
        "type": project_type,
        "templateName": template_name,
    }
    try:
        project_id = _service(ctx).create_project(Owner(id=owner, external_id=external_id), data)
    except ProvisioningError as e:
        _fail(str(e))

    if ctx.obj.get("quiet"):
        click.echo(project_id)
        return
    click.secho(f"✅ Project created: {name}", fg="green", bold=True)
    click.echo(f"   id: {project_id}")


@project.command("update")
@click.argument("project_id")
@_owner_option
@click.option("--name", required=True, help="Project name.")
@click.option("--description", default="", help="Project description.")
@click.option("--profile", default="", help="Target profile (web projects).")
@click.option("--version", "project_version", default="", help="Platform version (web projects).")
@click.pass_context
def project_update(
    ctx: click.Context,
    project_id: str,
    owner: str,
    name: str,
    description: str,
    profile: str,
    project_version: str,
) -> None:
    """Update a project."""
    from provisioner.core.errors import ProvisioningError
    from provisioner.core.models.project import Owner

    data = {
        "name": name,
        "description": description,
        "profile": profile,
        "version": project_version,
    }
    try:
        record = _service(ctx).update_project(Owner(id=owner), project_id, data)
    except ProvisioningError as e:
        _fail(str(e))
    click.secho(f"✅ Project updated: {record.name}", fg="green", bold=True)


@project.command("delete")
@click.argument("project_id")
@_owner_option
@click.pass_context
def project_delete(ctx: click.Context, project_id: str, owner: str) -> None:
    """Delete a project and its folders."""
    from provisioner.core.errors import ProvisioningError
    from provisioner.core.models.project import Owner

    try:
        _service(ctx).delete_project(Owner(id=owner), project_id)
    except ProvisioningError as e:
        _fail(str(e))
    click.secho(f"🗑️  Project deleted: {project_id}", fg="green")


# ── audit ───────────────────────────────────────────────────────────


@cli.command()
@click.option("-n", "count", default=20, type=int, help="Number of entries to show.")
@_json_option
@click.pass_context
def audit(ctx: click.Context, count: int, as_json: bool) -> None:
    """Show recent provisioning operations from the audit ledger."""
    from provisioner.core.persistence.audit import AuditWriter

    settings = _load_settings(ctx)
    entries = AuditWriter(settings.audit_path).read_recent(count)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No audit entries.")
        return

    for entry in entries:
        color = "green" if entry.status == "ok" else "red"
        click.echo(f"   {entry.timestamp}  {entry.operation_type:<6} ", nl=False)
        click.secho(f"{entry.status:<6}", fg=color, nl=False)
        click.echo(f" {entry.project_id or '-'}  ({entry.duration_ms}ms)")
        for error in entry.errors:
            click.echo(f"      ↳ {error}")


# ── web ─────────────────────────────────────────────────────────────


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int) -> None:
    """Start the projects API server."""
    from provisioner.ui.web.server import create_app, run_server

    settings = _load_settings(ctx)
    app = create_app(settings=settings, secret_key=os.environ.get("PROV_SECRET_KEY"))

    debug = ctx.obj.get("debug", False)

    click.echo()
    click.secho("⚡ Project Provisioner — API", bold=True)
    click.echo(f"   API:      http://{host}:{port}/api/projects")
    click.echo(f"   Projects: {settings.projects_root}")
    if debug:
        click.secho("   Logging: DEBUG (all output)", fg="yellow")
    click.echo()

    run_server(app, host=host, port=port, debug=debug)


if __name__ == "__main__":
    cli()
