"""
Storage factory – switch storage backend from config (lazy env version)
======================================================================

This module centralizes selection of the storage backend (in-memory vs DB)
so the rest of the app can stay ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- SHORTLINK_STORAGE_BACKEND: "memory" (default) or "postgres"
- SHORTLINK_DB_DSN:          DSN string if backend=="postgres"
- SHORTLINK_DB_INIT_SCHEMA:  "1" to apply the DDL (idempotent) when the postgres
                             backend is built; default "0"
"""

import logging
import os
from typing import Optional

from shortlink_registry.storage.base import BaseStorage
from shortlink_registry.storage.storage import Storage

log = logging.getLogger("shortlink.storage")


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads SHORTLINK_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend constructor. For postgres, use dsn="..." and
        optionally init_schema=True (overrides SHORTLINK_DB_INIT_SCHEMA).

    Raises
    ------
    ValueError
        Unknown backend, or postgres selected without a DSN.
    """
    be = (backend or os.getenv("SHORTLINK_STORAGE_BACKEND", "memory")).strip().lower()
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SHORTLINK_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SHORTLINK_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from shortlink_registry.storage.db_storage import DBStorage

        storage = DBStorage(dsn=dsn)
        init = kwargs.get("init_schema")
        if init is None:
            init = os.getenv("SHORTLINK_DB_INIT_SCHEMA", "0").strip().lower() in {"1", "true", "yes", "on"}
        if init:
            log.info("Applying short-link schema")
            storage.init_schema()
        return storage

    raise ValueError(f"Unknown storage backend: {be!r}")
