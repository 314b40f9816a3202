"""Challenge store registry.

Loads the configured challenge store by name and returns an initialised
:class:`ChallengeStore` instance.  Supports built-in stores (``memory``,
``postgres``) and custom stores via the ``ext:`` prefix.

Usage::

    from scepgate.store.registry import load_challenge_store

    store = load_challenge_store(settings.challenge.dynamic, settings.database)
    token = store.scep_challenge()
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from scepgate.challenge.base import StorageError
from scepgate.store.base import ChallengeStore

if TYPE_CHECKING:
    from scepgate.config.settings import DatabaseSettings, DynamicStoreSettings

log = logging.getLogger(__name__)

# Maps config string → (module_path, class_name)
_BUILTIN_STORES: dict[str, tuple[str, str]] = {
    "memory": ("scepgate.store.memory", "MemoryChallengeStore"),
    "postgres": ("scepgate.store.postgres", "PostgresChallengeStore"),
}


def load_challenge_store(
    settings: DynamicStoreSettings,
    database: DatabaseSettings | None = None,
) -> ChallengeStore:
    """Load and return the configured challenge store.

    Parameters
    ----------
    settings:
        The ``challenge.dynamic`` section.
    database:
        The ``database`` section, passed through to the store.

    Raises
    ------
    StorageError
        If the store cannot be loaded.

    """
    backend_name = settings.backend

    if backend_name in _BUILTIN_STORES:
        mod_path, cls_name = _BUILTIN_STORES[backend_name]
        label = backend_name
    elif backend_name.startswith("ext:"):
        mod_path, _, cls_name = backend_name[4:].rpartition(".")
        label = backend_name
        if not mod_path:
            msg = (
                f"Invalid external challenge store '{backend_name[4:]}': must be "
                "fully qualified (e.g. 'mypackage.module.ClassName')"
            )
            raise StorageError(msg)
    else:
        msg = (
            f"Unknown challenge store '{backend_name}'; "
            f"built-in options: {sorted(_BUILTIN_STORES)}. "
            f"Use 'ext:mypackage.module.ClassName' for custom stores."
        )
        raise StorageError(msg)

    try:
        module = importlib.import_module(mod_path)
        cls = getattr(module, cls_name)
    except (ImportError, AttributeError) as exc:
        msg = f"Failed to load challenge store '{label}': {exc}"
        raise StorageError(msg) from exc

    _validate_class(cls, label)
    store = cls(settings, database)
    log.info("Loaded challenge store: %s", label)
    return store


def _validate_class(cls: type, label: str) -> None:
    """Verify that a store class implements the store contract."""
    if not (isinstance(cls, type) and issubclass(cls, ChallengeStore)):
        msg = f"Challenge store '{label}' is not a subclass of ChallengeStore"
        raise StorageError(msg)

    for method_name in ("scep_challenge", "has_challenge", "gc"):
        method = getattr(cls, method_name, None)
        if method is None or getattr(method, "__isabstractmethod__", False):
            msg = f"Challenge store '{label}' does not implement '{method_name}()'"
            raise StorageError(msg)
