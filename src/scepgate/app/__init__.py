"""Admin API application."""

from scepgate.app.factory import create_app

__all__ = ["create_app"]
