from __future__ import annotations
"""
Dashboard read models: portfolio metrics, the stage board, silent deals and
the insight digest. All thresholds come from the ``pipeline`` config section.
"""
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from fastapi import APIRouter, Depends

from ..config import load_config
from ..database import RecordStore, get_store
from ..pipeline import SilenceCheck, build_insights, compute_metrics, silent_deals, summarize_by_stage, to_major_units
from ..schemas import Deal

router = APIRouter(prefix="/api", tags=["analytics"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _silent_rows(flagged: List[Tuple[Deal, SilenceCheck]]) -> List[Dict[str, Any]]:
    return [
        {"deal": deal.model_dump(mode="json"), **check.as_dict()}
        for deal, check in flagged
    ]


@router.get("/metrics")
def metrics(store: RecordStore = Depends(get_store)):
    return asdict(compute_metrics(store.list_leads(), store.list_deals()))


@router.get("/pipeline-summary")
def pipeline_summary(store: RecordStore = Depends(get_store)):
    top_n = load_config().pipeline.top_deals_per_stage
    return [
        {
            "stage": s.stage,
            "count": s.count,
            "total_value": to_major_units(s.total_value),
            "top_deals": [d.model_dump(mode="json") for d in s.top_deals],
        }
        for s in summarize_by_stage(store.list_deals(), top_n=top_n)
    ]


@router.get("/silent-deals")
def list_silent_deals(store: RecordStore = Depends(get_store)):
    threshold = load_config().pipeline.silence_threshold_days
    return _silent_rows(silent_deals(store.list_deals(), _now(), threshold))


@router.get("/insights")
def insights(store: RecordStore = Depends(get_store)):
    p = load_config().pipeline
    digest = build_insights(
        store.list_leads(),
        store.list_deals(),
        _now(),
        threshold_days=p.silence_threshold_days,
        min_score=p.hot_lead_score,
        max_health=p.at_risk_health_score,
    )
    return {
        "counts": digest.counts(),
        "headlines": digest.headlines,
        "silent_deals": _silent_rows(digest.silent),
        "hot_leads": [l.model_dump(mode="json") for l in digest.hot],
        "at_risk_deals": [d.model_dump(mode="json") for d in digest.at_risk],
    }
