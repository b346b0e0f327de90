"""
User-state store shared by the onboarding stage scripts.

Exposes the two store backends, the result type they return, and
:func:`create_store`, which picks a backend from configuration.
"""

from __future__ import annotations

import logging

from config import Config, get_config
from userstore.memory import MemoryUserStore
from userstore.remote import RemoteUserStore
from userstore.results import Degraded, Ok, StoreResult
from userstore.store import UserStore

logger = logging.getLogger(__name__)

__all__ = [
    "Degraded",
    "MemoryUserStore",
    "Ok",
    "RemoteUserStore",
    "StoreResult",
    "UserStore",
    "create_store",
]


def create_store(config_class: type[Config] | None = None) -> UserStore:
    """
    Build the user store selected by ``USER_STORE_BACKEND``.

    Args:
        config_class: Configuration class; defaults to the one chosen
            by ``FLASK_ENV``.

    Returns:
        A fresh store instance owned by the caller.

    Raises:
        ValueError: If the configured backend name is unknown.
    """
    config_class = config_class or get_config()
    backend = config_class.USER_STORE_BACKEND.lower()

    if backend == "memory":
        store: UserStore = MemoryUserStore()
    elif backend == "remote":
        store = RemoteUserStore(
            config_class.DATA_SERVICE_URL,
            timeout=config_class.DATA_SERVICE_TIMEOUT,
        )
    else:
        raise ValueError(f"Unknown USER_STORE_BACKEND '{backend}'. Use 'memory' or 'remote'.")

    logger.info("Using %s user store", backend)
    return store
