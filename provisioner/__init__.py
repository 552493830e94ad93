"""Project Provisioner — project records, directories and state sidecars."""

__version__ = "0.1.0"
