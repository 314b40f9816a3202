"""Flask application factory for the SCEPGATE admin API.

Usage::

    from scepgate.app import create_app
    from scepgate.config import get_config
    from scepgate.store import load_challenge_store

    settings = get_config().settings
    store = load_challenge_store(settings.challenge.dynamic, settings.database)
    app = create_app(config=get_config(), store=store)
"""

from __future__ import annotations

import atexit
import logging
import uuid
from typing import TYPE_CHECKING

from flask import Flask, g

from scepgate.app.errors import register_error_handlers
from scepgate.app.routes import admin_bp

if TYPE_CHECKING:
    from scepgate.config.scepgate_config import ScepgateConfig
    from scepgate.store.base import ChallengeStore

log = logging.getLogger(__name__)

_MAX_CONTENT_LENGTH = 16 * 1024


def create_app(
    config: ScepgateConfig | None = None,
    store: ChallengeStore | None = None,
) -> Flask:
    """Create and configure the admin API application.

    Parameters
    ----------
    config:
        Loaded :class:`ScepgateConfig`.  Falls back to :func:`get_config`
        when ``None``.
    store:
        Challenge store that issues challenges.  Loaded from
        configuration when ``None``.

    """
    if config is None:
        from scepgate.config import get_config  # noqa: PLC0415

        config = get_config()

    settings = config.settings

    if store is None:
        from scepgate.store.registry import load_challenge_store  # noqa: PLC0415

        store = load_challenge_store(settings.challenge.dynamic, settings.database)
        store.startup_check()

    app = Flask("scepgate")
    app.config["SCEPGATE_SETTINGS"] = settings
    app.config["SCEPGATE_CONFIG"] = config
    app.config["MAX_CONTENT_LENGTH"] = _MAX_CONTENT_LENGTH
    app.extensions["challenge_store"] = store

    @app.before_request
    def _assign_request_id() -> None:
        g.request_id = uuid.uuid4().hex

    register_error_handlers(app)
    app.register_blueprint(admin_bp)

    # -- Expired challenge sweep ------------------------------------------
    gc_interval = settings.challenge.dynamic.gc_interval_seconds
    if gc_interval > 0:
        from scepgate.store.cleanup import ChallengeGcWorker  # noqa: PLC0415

        worker = ChallengeGcWorker(store, gc_interval)
        worker.start()
        atexit.register(worker.stop)
        app.extensions["challenge_gc_worker"] = worker

    log.info("Admin API ready (store=%s)", store.backend_name)
    return app
