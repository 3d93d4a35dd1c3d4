from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class LeadStatus(str, Enum):
    NEW = "new"
    QUALIFIED = "qualified"
    CONTACTED = "contacted"
    NURTURING = "nurturing"
    LOST = "lost"

class DealStage(str, Enum):
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSING = "closing"
    WON = "won"
    LOST = "lost"

class ActivityType(str, Enum):
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    NOTE = "note"

class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# ---------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------
class LeadCreate(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "company_name": "NutriCorp Health",
                "industry": "Healthcare",
                "employee_count": "51-200",
                "budget_range": "$30K - $75K",
                "timeline": "Immediate",
                "interest_area": "Employee Wellness",
                "priority": "high",
            }
        }
    )
    company_name: str = Field(..., min_length=1)
    industry: Optional[str] = None
    employee_count: Optional[str] = None
    budget_range: Optional[str] = None
    timeline: Optional[str] = None
    interest_area: Optional[str] = None
    notes: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    status: LeadStatus = LeadStatus.NEW

class LeadUpdate(BaseModel):
    """Partial patch; only the fields that were sent are applied."""
    company_name: Optional[str] = Field(default=None, min_length=1)
    industry: Optional[str] = None
    employee_count: Optional[str] = None
    budget_range: Optional[str] = None
    timeline: Optional[str] = None
    interest_area: Optional[str] = None
    notes: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[LeadStatus] = None

    @field_validator("company_name", "priority", "status")
    @classmethod
    def _not_null(cls, v):
        # omitted means unchanged; an explicit null is rejected
        if v is None:
            raise ValueError("may not be null")
        return v

class Lead(LeadCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
    ai_score: int = Field(default=0, ge=0, le=100)
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------
# Deals
# ---------------------------------------------------------------------
class DealCreate(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "lead_id": 1,
                "company_name": "Acme Corporation",
                "value": 4500000,
                "stage": "qualified",
                "probability": 25,
                "health_score": 85,
            }
        }
    )
    lead_id: Optional[int] = None
    company_name: str = Field(..., min_length=1)
    value: int = Field(..., ge=0, description="Amount in cents")
    stage: DealStage
    probability: int = Field(default=25, ge=0, le=100)
    close_date: Optional[datetime] = None
    notes: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    health_score: int = Field(default=50, ge=0, le=100)

class DealUpdate(BaseModel):
    lead_id: Optional[int] = None
    company_name: Optional[str] = Field(default=None, min_length=1)
    value: Optional[int] = Field(default=None, ge=0)
    stage: Optional[DealStage] = None
    probability: Optional[int] = Field(default=None, ge=0, le=100)
    close_date: Optional[datetime] = None
    notes: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    health_score: Optional[int] = Field(default=None, ge=0, le=100)

    @field_validator("company_name", "value", "stage", "probability", "health_score")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v

class Deal(DealCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------
# Activities & call notes (append-only)
# ---------------------------------------------------------------------
class ActivityCreate(BaseModel):
    deal_id: Optional[int] = None
    lead_id: Optional[int] = None
    type: ActivityType
    description: str = Field(..., min_length=1)
    outcome: Optional[str] = None
    next_steps: Optional[str] = None

class Activity(ActivityCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
    created_at: datetime

class CallNoteCreate(BaseModel):
    deal_id: Optional[int] = None
    lead_id: Optional[int] = None
    call_duration: Optional[int] = Field(default=None, ge=0, description="Minutes")
    summary: str = Field(..., min_length=1)
    key_points: List[str] = Field(default_factory=list)
    objections: List[str] = Field(default_factory=list)
    next_steps: Optional[str] = None
    sentiment: Optional[Sentiment] = None
    coaching_notes: Optional[str] = None

class CallNote(CallNoteCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
    created_at: datetime
