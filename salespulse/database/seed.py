from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone

from ..schemas import ActivityCreate, DealCreate, DealUpdate, LeadCreate, LeadStatus, Priority
from .base import RecordStore

logger = logging.getLogger(__name__)

SAMPLE_LEADS = [
    LeadCreate(
        company_name="Acme Corporation", industry="Manufacturing", employee_count="201-1000",
        budget_range="$75K - $150K", timeline="3-6 months", interest_area="Office Snacks",
        notes="Large manufacturing company looking for comprehensive snack program",
        priority=Priority.HIGH, status=LeadStatus.QUALIFIED,
    ),
    LeadCreate(
        company_name="NutriCorp Health", industry="Healthcare", employee_count="51-200",
        budget_range="$30K - $75K", timeline="Immediate", interest_area="Employee Wellness",
        notes="Healthcare company focused on employee wellness programs",
        priority=Priority.HIGH, status=LeadStatus.QUALIFIED,
    ),
    LeadCreate(
        company_name="FoodTech Ltd", industry="Technology", employee_count="11-50",
        budget_range="$15K - $30K", timeline="6+ months", interest_area="Corporate Events",
        notes="Tech startup interested in event catering",
        priority=Priority.MEDIUM, status=LeadStatus.CONTACTED,
    ),
]

# (deal, days since last contact)
SAMPLE_DEALS = [
    (DealCreate(lead_id=1, company_name="Acme Corporation", value=4500000, stage="qualified",
                probability=25, health_score=85, notes="Strong initial interest, need to present proposal"), 1),
    (DealCreate(lead_id=2, company_name="NutriCorp Health", value=6700000, stage="proposal",
                probability=60, health_score=90, notes="Proposal submitted, awaiting feedback"), 3),
    (DealCreate(company_name="GlobalCo", value=12500000, stage="proposal",
                probability=50, health_score=75, notes="Multi-location program in proposal stage"), 6),
    (DealCreate(company_name="MegaFirm", value=8900000, stage="negotiation",
                probability=80, health_score=55, notes="In contract negotiation phase"), 8),
    (DealCreate(company_name="SmartCorp", value=15600000, stage="closing",
                probability=95, health_score=95, notes="Final contract review, close expected this week"), 0),
]

# (activity, hours ago)
SAMPLE_ACTIVITIES = [
    (ActivityCreate(deal_id=1, lead_id=1, type="call", description="Discovery call completed",
                    outcome="Positive response, interested in full program",
                    next_steps="Send proposal by end of week"), 50),
    (ActivityCreate(deal_id=2, lead_id=2, type="email", description="Follow-up proposal sent",
                    outcome="Proposal delivered successfully",
                    next_steps="Schedule follow-up call for next week"), 26),
    (ActivityCreate(lead_id=3, type="call", description="Initial qualification call",
                    outcome="Budget confirmed, timeline extended",
                    next_steps="Send information packet"), 4),
]


def seed_sample_data(store: RecordStore, now: datetime | None = None) -> None:
    """Demo records. Skipped when the store already holds leads."""
    if store.list_leads():
        return
    now = now or datetime.now(timezone.utc)
    for lead in SAMPLE_LEADS:
        store.create_lead(lead)
    for deal, days_ago in SAMPLE_DEALS:
        created = store.create_deal(deal)
        store.update_deal(created.id, DealUpdate(last_contact_date=now - timedelta(days=days_ago)))
    for activity, hours_ago in SAMPLE_ACTIVITIES:
        store.create_activity(activity, created_at=now - timedelta(hours=hours_ago))
    logger.info("Seeded %d leads, %d deals, %d activities",
                len(SAMPLE_LEADS), len(SAMPLE_DEALS), len(SAMPLE_ACTIVITIES))
