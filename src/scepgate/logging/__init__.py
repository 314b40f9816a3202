"""Logging subsystem for SCEPGATE.

Public API::

    from scepgate.logging import configure_logging

    configure_logging(settings.logging)
"""

from scepgate.logging.setup import configure_logging

__all__ = ["configure_logging"]
