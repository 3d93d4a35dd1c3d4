from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from pydantic import BaseModel, ConfigDict, ValidationError

from ..database import RecordStore, get_store
from ..pipeline import filter_leads
from ..redis_store import log_event
from ..schemas import Lead, LeadCreate, LeadUpdate
from ..scoring import explain_ai_score, score_band

router = APIRouter(prefix="/api/leads", tags=["leads"])

EXPORT_COLUMNS = {
    "company_name": "Company",
    "industry": "Industry",
    "ai_score": "AI Score",
    "budget_range": "Budget",
    "timeline": "Timeline",
    "status": "Status",
}
# accepted CSV headers on import, besides the field names themselves
IMPORT_HEADERS = {
    "Company": "company_name",
    "Industry": "industry",
    "Employees": "employee_count",
    "Budget": "budget_range",
    "Timeline": "timeline",
    "Interest": "interest_area",
    "Notes": "notes",
    "Priority": "priority",
    "Status": "status",
}
_LOWERCASED = ("priority", "status")


class ScorePreviewRequest(BaseModel):
    model_config = ConfigDict(json_schema_extra={
        "example": {"budget_range": "$75K - $150K", "timeline": "1-3 months", "employee_count": "201-1000"}
    })
    budget_range: Optional[str] = None
    timeline: Optional[str] = None
    employee_count: Optional[str] = None
    industry: Optional[str] = None


class ScorePreviewResponse(BaseModel):
    ai_score: int
    band: str
    contributions: List[Dict[str, Any]]


class ImportResponse(BaseModel):
    imported: int
    skipped: List[Dict[str, Any]]
    leads: List[Lead]


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Lead not found")


@router.get("", response_model=List[Lead])
def list_leads(search: Optional[str] = None, store: RecordStore = Depends(get_store)):
    return filter_leads(store.list_leads(), search)


@router.post("", response_model=Lead, status_code=201)
def create_lead(req: LeadCreate, store: RecordStore = Depends(get_store)):
    lead = store.create_lead(req)
    log_event("leads", "lead_created", {"id": lead.id, "ai_score": lead.ai_score})
    return lead


@router.post("/score-preview", response_model=ScorePreviewResponse)
def score_preview(req: ScorePreviewRequest):
    """Live score while the intake form is being filled; nothing is stored."""
    breakdown = explain_ai_score(req.budget_range, req.timeline, req.employee_count, req.industry)
    return ScorePreviewResponse(
        ai_score=breakdown.score,
        band=score_band(breakdown.score),
        contributions=[asdict(c) for c in breakdown.contributions],
    )


@router.get("/export")
def export_leads(search: Optional[str] = None, store: RecordStore = Depends(get_store)):
    leads = filter_leads(store.list_leads(), search)
    rows = [lead.model_dump(mode="json", include=set(EXPORT_COLUMNS)) for lead in leads]
    df = pd.DataFrame(rows, columns=list(EXPORT_COLUMNS)).rename(columns=EXPORT_COLUMNS)
    log_event("leads", "leads_exported", {"count": len(rows)})
    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="leads.csv"'},
    )


@router.post("/import", response_model=ImportResponse)
def import_leads(
    file: UploadFile = File(..., description="CSV of leads to create"),
    store: RecordStore = Depends(get_store),
):
    """
    Create one scored lead per CSV row. Headers may be the export names
    (Company, Industry, Budget, ...) or the lead field names. Rows that fail
    validation are reported back and skipped.
    """
    filename = file.filename or ""
    if not filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a .csv file")

    try:
        file.file.seek(0)
        df = pd.read_csv(file.file, dtype=str)
    except (ValueError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise HTTPException(status_code=400, detail=f"Could not read CSV: {e}")

    if df.empty:
        raise HTTPException(status_code=400, detail="CSV file has no rows")

    df = df.rename(columns=IMPORT_HEADERS)
    df = df.astype(object).where(pd.notna(df), None)

    created: List[Lead] = []
    skipped: List[Dict[str, Any]] = []
    for i, row in enumerate(df.to_dict(orient="records"), start=1):
        fields = {k: v for k, v in row.items() if k in LeadCreate.model_fields and v is not None}
        for key in _LOWERCASED:
            if key in fields:
                fields[key] = str(fields[key]).strip().lower()
        try:
            data = LeadCreate.model_validate(fields)
        except ValidationError as e:
            skipped.append({"row": i, "errors": [err["msg"] for err in e.errors()]})
            continue
        created.append(store.create_lead(data))

    log_event("leads", "leads_imported", {
        "filename": filename,
        "imported": len(created),
        "skipped": len(skipped),
    })
    return ImportResponse(imported=len(created), skipped=skipped, leads=created)


@router.get("/{lead_id}", response_model=Lead)
def get_lead(lead_id: int, store: RecordStore = Depends(get_store)):
    lead = store.get_lead(lead_id)
    if lead is None:
        raise _not_found()
    return lead


@router.put("/{lead_id}", response_model=Lead)
def update_lead(lead_id: int, req: LeadUpdate, store: RecordStore = Depends(get_store)):
    lead = store.update_lead(lead_id, req)
    if lead is None:
        raise _not_found()
    log_event("leads", "lead_updated", {
        "id": lead.id,
        "fields": sorted(req.model_dump(exclude_unset=True)),
        "ai_score": lead.ai_score,
    })
    return lead


@router.delete("/{lead_id}", status_code=204)
def delete_lead(lead_id: int, store: RecordStore = Depends(get_store)):
    if not store.delete_lead(lead_id):
        raise _not_found()
    log_event("leads", "lead_deleted", {"id": lead_id})
    return Response(status_code=204)
