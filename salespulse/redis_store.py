from __future__ import annotations
"""
Business event log kept in Redis lists, one list per stream ("leads",
"deals", "integrations", ...). When Redis cannot be reached the log turns
into a no-op so the API keeps serving.
"""
import os, json, time, logging
from typing import Any, Dict, List, Optional

import redis

from .config import load_config

logger = logging.getLogger(__name__)

SAVE_LOGS = os.environ.get("SAVE_LOGS", "true").lower() == "true"
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

_client: Optional[redis.Redis] = None
_unavailable = False

def client() -> Optional[redis.Redis]:
    """Lazily connect once; remember a failed ping and stop retrying."""
    global _client, _unavailable
    if _client is not None:
        return _client
    if _unavailable:
        return None
    try:
        c = redis.Redis.from_url(REDIS_URL, decode_responses=True, socket_connect_timeout=1)
        c.ping()
    except redis.RedisError as e:
        logger.warning("Redis unavailable at %s, event log disabled: %s", REDIS_URL, e)
        _unavailable = True
        return None
    _client = c
    return _client

def _key(stream: str) -> str:
    return f"{load_config().storage.logs_key_prefix}:{stream}"

def log_event(stream: str, kind: str, payload: Dict[str, Any]):
    if not SAVE_LOGS:
        return
    c = client()
    if c is None:
        return
    entry = {"ts": int(time.time()), "kind": kind, **payload}
    try:
        c.rpush(_key(stream), json.dumps(entry, ensure_ascii=False, default=str))
        c.expire(_key(stream), load_config().storage.ttl_seconds)
    except redis.RedisError as e:
        logger.warning("Dropped %s event for stream %s: %s", kind, stream, e)

def read_logs(stream: str, last_n: int = 200) -> List[Dict[str, Any]]:
    c = client()
    if c is None:
        return []
    try:
        items = c.lrange(_key(stream), -last_n, -1)
    except redis.RedisError as e:
        logger.warning("Could not read stream %s: %s", stream, e)
        return []
    return [json.loads(x) for x in items]
