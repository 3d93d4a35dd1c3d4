from __future__ import annotations
import itertools
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..pipeline import newest_first
from ..schemas import (
    Activity, ActivityCreate, CallNote, CallNoteCreate,
    Deal, DealCreate, DealUpdate, Lead, LeadCreate, LeadUpdate,
)
from ..scoring import score_lead
from .base import RecordStore, touches_scoring


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStore(RecordStore):
    """Process-local store. One lock serialises every write and id allocation."""

    def __init__(self):
        self._lock = threading.Lock()
        self._leads: Dict[int, Lead] = {}
        self._deals: Dict[int, Deal] = {}
        self._activities: Dict[int, Activity] = {}
        self._call_notes: Dict[int, CallNote] = {}
        self._ids = {
            "lead": itertools.count(1),
            "deal": itertools.count(1),
            "activity": itertools.count(1),
            "call_note": itertools.count(1),
        }

    # ---- leads ----
    def list_leads(self) -> List[Lead]:
        return newest_first(self._leads.values())

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        return self._leads.get(lead_id)

    def create_lead(self, data: LeadCreate) -> Lead:
        with self._lock:
            now = _now()
            lead = Lead(
                **data.model_dump(),
                id=next(self._ids["lead"]),
                ai_score=score_lead(data),
                created_at=now,
                updated_at=now,
            )
            self._leads[lead.id] = lead
            return lead

    def update_lead(self, lead_id: int, patch: LeadUpdate) -> Optional[Lead]:
        changes = patch.model_dump(exclude_unset=True)
        with self._lock:
            existing = self._leads.get(lead_id)
            if existing is None:
                return None
            updated = Lead.model_validate({**existing.model_dump(), **changes, "updated_at": _now()})
            if touches_scoring(changes):
                updated.ai_score = score_lead(updated)
            self._leads[lead_id] = updated
            return updated

    def delete_lead(self, lead_id: int) -> bool:
        with self._lock:
            return self._leads.pop(lead_id, None) is not None

    def _set_ai_score(self, lead_id: int, score: int) -> None:
        with self._lock:
            lead = self._leads.get(lead_id)
            if lead is not None:
                self._leads[lead_id] = lead.model_copy(update={"ai_score": score, "updated_at": _now()})

    # ---- deals ----
    def list_deals(self) -> List[Deal]:
        return newest_first(self._deals.values())

    def get_deal(self, deal_id: int) -> Optional[Deal]:
        return self._deals.get(deal_id)

    def list_deals_by_stage(self, stage: str) -> List[Deal]:
        return [d for d in self.list_deals() if d.stage.value == stage]

    def create_deal(self, data: DealCreate) -> Deal:
        with self._lock:
            now = _now()
            fields = data.model_dump()
            fields["last_contact_date"] = fields["last_contact_date"] or now
            deal = Deal(**fields, id=next(self._ids["deal"]), created_at=now, updated_at=now)
            self._deals[deal.id] = deal
            return deal

    def update_deal(self, deal_id: int, patch: DealUpdate) -> Optional[Deal]:
        changes = patch.model_dump(exclude_unset=True)
        with self._lock:
            existing = self._deals.get(deal_id)
            if existing is None:
                return None
            updated = Deal.model_validate({**existing.model_dump(), **changes, "updated_at": _now()})
            self._deals[deal_id] = updated
            return updated

    def delete_deal(self, deal_id: int) -> bool:
        with self._lock:
            return self._deals.pop(deal_id, None) is not None

    # ---- activities / call notes ----
    def list_activities(self, deal_id: Optional[int] = None, lead_id: Optional[int] = None) -> List[Activity]:
        items = self._activities.values()
        if deal_id is not None:
            items = [a for a in items if a.deal_id == deal_id]
        elif lead_id is not None:
            items = [a for a in items if a.lead_id == lead_id]
        return newest_first(items)

    def create_activity(self, data: ActivityCreate, created_at: Optional[datetime] = None) -> Activity:
        with self._lock:
            activity = Activity(**data.model_dump(), id=next(self._ids["activity"]), created_at=created_at or _now())
            self._activities[activity.id] = activity
            return activity

    def list_call_notes(self, deal_id: Optional[int] = None, lead_id: Optional[int] = None) -> List[CallNote]:
        items = self._call_notes.values()
        if deal_id is not None:
            items = [n for n in items if n.deal_id == deal_id]
        elif lead_id is not None:
            items = [n for n in items if n.lead_id == lead_id]
        return newest_first(items)

    def create_call_note(self, data: CallNoteCreate) -> CallNote:
        with self._lock:
            note = CallNote(**data.model_dump(), id=next(self._ids["call_note"]), created_at=_now())
            self._call_notes[note.id] = note
            return note
