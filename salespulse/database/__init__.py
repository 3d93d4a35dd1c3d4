from __future__ import annotations
import logging
from typing import Optional

from ..config import Config, load_config
from .base import RecordStore
from .memory import MemoryStore
from .repositories import SqlStore
from .seed import seed_sample_data

logger = logging.getLogger(__name__)

_store: Optional[RecordStore] = None


def build_store(cfg: Config) -> RecordStore:
    backend = cfg.storage.backend.lower()
    if backend == "memory":
        store: RecordStore = MemoryStore()
    elif backend == "sql":
        store = SqlStore(cfg.storage.db_url)
    else:
        raise ValueError(f"Unknown storage backend: {cfg.storage.backend}")
    logger.info("Record store: %s", backend)
    if cfg.storage.seed_sample_data:
        seed_sample_data(store)
    return store


def get_store() -> RecordStore:
    global _store
    if _store is None:
        _store = build_store(load_config())
    return _store


__all__ = ["RecordStore", "MemoryStore", "SqlStore", "build_store", "get_store", "seed_sample_data"]
