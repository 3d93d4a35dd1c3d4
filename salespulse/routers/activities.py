from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..database import RecordStore, get_store
from ..redis_store import log_event
from ..schemas import Activity, ActivityCreate, CallNote, CallNoteCreate

router = APIRouter(prefix="/api", tags=["activities"])


@router.get("/activities", response_model=List[Activity])
def list_activities(
    deal_id: Optional[int] = None,
    lead_id: Optional[int] = None,
    store: RecordStore = Depends(get_store),
):
    return store.list_activities(deal_id=deal_id, lead_id=lead_id)


@router.post("/activities", response_model=Activity, status_code=201)
def create_activity(req: ActivityCreate, store: RecordStore = Depends(get_store)):
    activity = store.create_activity(req)
    log_event("activities", "activity_created", {"id": activity.id, "type": activity.type.value})
    return activity


@router.get("/call-notes", response_model=List[CallNote])
def list_call_notes(
    deal_id: Optional[int] = None,
    lead_id: Optional[int] = None,
    store: RecordStore = Depends(get_store),
):
    return store.list_call_notes(deal_id=deal_id, lead_id=lead_id)


@router.post("/call-notes", response_model=CallNote, status_code=201)
def create_call_note(req: CallNoteCreate, store: RecordStore = Depends(get_store)):
    note = store.create_call_note(req)
    log_event("activities", "call_note_created", {"id": note.id, "deal_id": note.deal_id})
    return note
