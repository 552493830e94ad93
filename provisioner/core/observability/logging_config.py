"""
Logging configuration — one setup call per process.

Entry points (the CLI, the web server) call ``setup_logging`` once;
every module logs through ``logging.getLogger(__name__)``.

Level precedence:
    --debug / --verbose / --quiet  >  PROV_LOG_LEVEL  >  WARNING

A log file is added with PROV_LOG_FILE (level PROV_LOG_FILE_LEVEL,
defaulting to the console level).  The file always gets the full
diagnostic format so rollback failures can be traced afterwards.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

# (format, datefmt) per console tier
_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(levelname)s: %(message)s", None),
}

_FILE_FORMAT = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%Y-%m-%d %H:%M:%S")

# werkzeug logs every request at INFO
_NOISY_LOGGERS = ("werkzeug", "urllib3")


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get("PROV_LOG_LEVEL", "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Level for the log file; defaults to ``level``.
        quiet_third_party: Hold noisy library loggers at WARNING unless
            the console is at DEBUG.
    """
    console_level = _parse_level(level)
    tier = max(t for t in _CONSOLE_FORMATS if t <= max(console_level, logging.DEBUG))
    fmt, datefmt = _CONSOLE_FORMATS[tier]

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT[0], datefmt=_FILE_FORMAT[1]))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name → numeric constant; unknown names mean WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
