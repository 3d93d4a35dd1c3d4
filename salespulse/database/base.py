# database/base.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..schemas import (
    Activity, ActivityCreate, CallNote, CallNoteCreate,
    Deal, DealCreate, DealUpdate, Lead, LeadCreate, LeadUpdate,
)
from ..scoring import SCORING_FIELDS, score_lead


def touches_scoring(patch: Dict[str, Any]) -> bool:
    return any(f in patch for f in SCORING_FIELDS)


class RecordStore(ABC):
    """
    Keyed store for leads, deals, activities and call notes.

    Lists come back newest first. Ids are positive, increase monotonically
    per entity and are never reused. ``create_lead`` scores the lead exactly
    once; ``update_lead`` rescores only when the patch touches a scoring
    field.
    """

    # Leads
    @abstractmethod
    def list_leads(self) -> List[Lead]: ...

    @abstractmethod
    def get_lead(self, lead_id: int) -> Optional[Lead]: ...

    @abstractmethod
    def create_lead(self, data: LeadCreate) -> Lead: ...

    @abstractmethod
    def update_lead(self, lead_id: int, patch: LeadUpdate) -> Optional[Lead]: ...

    @abstractmethod
    def delete_lead(self, lead_id: int) -> bool: ...

    # Deals
    @abstractmethod
    def list_deals(self) -> List[Deal]: ...

    @abstractmethod
    def get_deal(self, deal_id: int) -> Optional[Deal]: ...

    @abstractmethod
    def list_deals_by_stage(self, stage: str) -> List[Deal]: ...

    @abstractmethod
    def create_deal(self, data: DealCreate) -> Deal: ...

    @abstractmethod
    def update_deal(self, deal_id: int, patch: DealUpdate) -> Optional[Deal]: ...

    @abstractmethod
    def delete_deal(self, deal_id: int) -> bool: ...

    # Activities
    @abstractmethod
    def list_activities(self, deal_id: Optional[int] = None, lead_id: Optional[int] = None) -> List[Activity]: ...

    @abstractmethod
    def create_activity(self, data: ActivityCreate, created_at: Optional[datetime] = None) -> Activity: ...

    # Call notes
    @abstractmethod
    def list_call_notes(self, deal_id: Optional[int] = None, lead_id: Optional[int] = None) -> List[CallNote]: ...

    @abstractmethod
    def create_call_note(self, data: CallNoteCreate) -> CallNote: ...

    def rescore_leads(self, dry_run: bool = False) -> int:
        """Re-apply the scoring function to every lead; returns how many changed."""
        changed = 0
        for lead in self.list_leads():
            fresh = score_lead(lead)
            if fresh != lead.ai_score:
                changed += 1
                if not dry_run:
                    self._set_ai_score(lead.id, fresh)
        return changed

    @abstractmethod
    def _set_ai_score(self, lead_id: int, score: int) -> None: ...
