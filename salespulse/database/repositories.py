from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..schemas import (
    Activity, ActivityCreate, CallNote, CallNoteCreate,
    Deal, DealCreate, DealUpdate, Lead, LeadCreate, LeadUpdate,
)
from ..scoring import score_lead
from .base import RecordStore, touches_scoring
from .models import ActivityRow, CallNoteRow, DealRow, LeadRow
from .session import bootstrap_db, make_engine, make_sessionmaker

_DATETIME_FIELDS = ("created_at", "updated_at", "close_date", "last_contact_date")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _plain(values: Dict[str, Any]) -> Dict[str, Any]:
    """Enums to their string values for the ORM columns."""
    return {k: getattr(v, "value", v) for k, v in values.items()}


def _to_model(row: Any, model: Type):
    rec = model.model_validate(row)
    # SQLite hands timestamps back naive; they were written as UTC
    for f in _DATETIME_FIELDS:
        ts = getattr(rec, f, None)
        if isinstance(ts, datetime) and ts.tzinfo is None:
            setattr(rec, f, ts.replace(tzinfo=timezone.utc))
    return rec


class SqlStore(RecordStore):
    """SQLAlchemy-backed store; SQLite by default."""

    def __init__(self, db_url: str):
        self.engine = make_engine(db_url)
        bootstrap_db(self.engine)
        self.SessionLocal = make_sessionmaker(self.engine)

    def _session(self) -> Session:
        return self.SessionLocal()

    def _list(self, row_cls, model: Type, **filters) -> List[Any]:
        q = select(row_cls)
        for col, val in filters.items():
            if val is not None:
                q = q.where(getattr(row_cls, col) == val)
        q = q.order_by(row_cls.created_at.desc(), row_cls.id.desc())
        with self._session() as db:
            return [_to_model(r, model) for r in db.scalars(q).all()]

    def _get(self, row_cls, model: Type, rec_id: int):
        with self._session() as db:
            row = db.get(row_cls, rec_id)
            return _to_model(row, model) if row is not None else None

    def _add(self, row, model: Type):
        with self._session() as db:
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_model(row, model)

    def _delete(self, row_cls, rec_id: int) -> bool:
        with self._session() as db:
            row = db.get(row_cls, rec_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

    # ---- leads ----
    def list_leads(self) -> List[Lead]:
        return self._list(LeadRow, Lead)

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        return self._get(LeadRow, Lead, lead_id)

    def create_lead(self, data: LeadCreate) -> Lead:
        now = _now()
        row = LeadRow(**_plain(data.model_dump()), ai_score=score_lead(data), created_at=now, updated_at=now)
        return self._add(row, Lead)

    def update_lead(self, lead_id: int, patch: LeadUpdate) -> Optional[Lead]:
        changes = _plain(patch.model_dump(exclude_unset=True))
        with self._session() as db:
            row = db.get(LeadRow, lead_id)
            if row is None:
                return None
            for k, v in changes.items():
                setattr(row, k, v)
            if touches_scoring(changes):
                row.ai_score = score_lead(row)
            row.updated_at = _now()
            db.commit()
            db.refresh(row)
            return _to_model(row, Lead)

    def delete_lead(self, lead_id: int) -> bool:
        return self._delete(LeadRow, lead_id)

    def _set_ai_score(self, lead_id: int, score: int) -> None:
        with self._session() as db:
            row = db.get(LeadRow, lead_id)
            if row is not None:
                row.ai_score = score
                row.updated_at = _now()
                db.commit()

    # ---- deals ----
    def list_deals(self) -> List[Deal]:
        return self._list(DealRow, Deal)

    def get_deal(self, deal_id: int) -> Optional[Deal]:
        return self._get(DealRow, Deal, deal_id)

    def list_deals_by_stage(self, stage: str) -> List[Deal]:
        return self._list(DealRow, Deal, stage=stage)

    def create_deal(self, data: DealCreate) -> Deal:
        now = _now()
        fields = _plain(data.model_dump())
        fields["last_contact_date"] = fields["last_contact_date"] or now
        return self._add(DealRow(**fields, created_at=now, updated_at=now), Deal)

    def update_deal(self, deal_id: int, patch: DealUpdate) -> Optional[Deal]:
        changes = _plain(patch.model_dump(exclude_unset=True))
        with self._session() as db:
            row = db.get(DealRow, deal_id)
            if row is None:
                return None
            for k, v in changes.items():
                setattr(row, k, v)
            row.updated_at = _now()
            db.commit()
            db.refresh(row)
            return _to_model(row, Deal)

    def delete_deal(self, deal_id: int) -> bool:
        return self._delete(DealRow, deal_id)

    # ---- activities / call notes ----
    def list_activities(self, deal_id: Optional[int] = None, lead_id: Optional[int] = None) -> List[Activity]:
        if deal_id is not None:
            return self._list(ActivityRow, Activity, deal_id=deal_id)
        return self._list(ActivityRow, Activity, lead_id=lead_id)

    def create_activity(self, data: ActivityCreate, created_at: Optional[datetime] = None) -> Activity:
        row = ActivityRow(**_plain(data.model_dump()), created_at=created_at or _now())
        return self._add(row, Activity)

    def list_call_notes(self, deal_id: Optional[int] = None, lead_id: Optional[int] = None) -> List[CallNote]:
        if deal_id is not None:
            return self._list(CallNoteRow, CallNote, deal_id=deal_id)
        return self._list(CallNoteRow, CallNote, lead_id=lead_id)

    def create_call_note(self, data: CallNoteCreate) -> CallNote:
        row = CallNoteRow(**_plain(data.model_dump()), created_at=_now())
        return self._add(row, CallNote)
