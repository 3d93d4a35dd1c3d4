from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from ..config import load_config
from ..database import RecordStore, get_store
from ..pipeline import classify_silence, deal_heat
from ..redis_store import log_event
from ..schemas import Deal, DealCreate, DealStage, DealUpdate

router = APIRouter(prefix="/api/deals", tags=["deals"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Deal not found")


@router.get("", response_model=List[Deal])
def list_deals(stage: Optional[DealStage] = None, store: RecordStore = Depends(get_store)):
    if stage is not None:
        return store.list_deals_by_stage(stage.value)
    return store.list_deals()


@router.post("", response_model=Deal, status_code=201)
def create_deal(req: DealCreate, store: RecordStore = Depends(get_store)):
    deal = store.create_deal(req)
    log_event("deals", "deal_created", {"id": deal.id, "stage": deal.stage.value, "value": deal.value})
    return deal


@router.get("/{deal_id}", response_model=Deal)
def get_deal(deal_id: int, store: RecordStore = Depends(get_store)):
    deal = store.get_deal(deal_id)
    if deal is None:
        raise _not_found()
    return deal


@router.get("/{deal_id}/silence")
def deal_silence(deal_id: int, store: RecordStore = Depends(get_store)) -> Dict[str, Any]:
    deal = store.get_deal(deal_id)
    if deal is None:
        raise _not_found()
    threshold = load_config().pipeline.silence_threshold_days
    check = classify_silence(deal, datetime.now(timezone.utc), threshold)
    return {"deal_id": deal.id, "threshold_days": threshold, "heat": deal_heat(deal), **check.as_dict()}


@router.put("/{deal_id}", response_model=Deal)
def update_deal(deal_id: int, req: DealUpdate, store: RecordStore = Depends(get_store)):
    deal = store.update_deal(deal_id, req)
    if deal is None:
        raise _not_found()
    log_event("deals", "deal_updated", {"id": deal.id, "fields": sorted(req.model_dump(exclude_unset=True))})
    return deal


@router.delete("/{deal_id}", status_code=204)
def delete_deal(deal_id: int, store: RecordStore = Depends(get_store)):
    if not store.delete_deal(deal_id):
        raise _not_found()
    log_event("deals", "deal_deleted", {"id": deal_id})
    return Response(status_code=204)
