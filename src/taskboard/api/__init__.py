"""HTTP API for Taskboard."""

from .main import create_app, run

__all__ = ["create_app", "run"]
