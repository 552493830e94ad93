"""
Web server — Flask app factory.

Creates the Flask application serving the projects JSON API.  The
app holds one ``ProjectService``; routes reach it through
``current_app.extensions["provisioner"]``.
"""

from __future__ import annotations

import logging
import secrets

from flask import Flask

from provisioner.core.models.settings import Settings
from provisioner.core.use_cases.projects import ProjectService, build_service

logger = logging.getLogger(__name__)

EXTENSION_KEY = "provisioner"


def create_app(
    settings: Settings | None = None,
    service: ProjectService | None = None,
    secret_key: str | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Provisioner settings; used to build the service
            when *service* is not given.
        service: A pre-built service (tests inject one over an
            in-memory store).
        secret_key: Session signing key.  A random key is generated
            when omitted, which invalidates sessions on restart.

    Returns:
        Configured Flask application.
    """
    if service is None:
        if settings is None:
            raise ValueError("create_app needs settings or a service")
        service = build_service(settings)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = secret_key or secrets.token_hex(32)
    app.extensions[EXTENSION_KEY] = service

    from provisioner.ui.web.routes_projects import projects_bp

    app.register_blueprint(projects_bp, url_prefix="/api/projects")

    logger.info("Web app created (projects_root=%s)", service.settings.projects_root)
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting web server on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False)
