from __future__ import annotations
"""Read back the business event log kept in Redis."""
from fastapi import APIRouter
from ..redis_store import read_logs

router = APIRouter(prefix="/api/logs", tags=["logs"])

@router.get("/{stream}")
def read(stream: str, last_n: int = 200):
    return {"stream": stream, "items": read_logs(stream, last_n=last_n)}
