from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from ..config import Config
from ..pipeline import SILENCE_THRESHOLD_DAYS, classify_contact
from .ai_engine import AIEngine
from .gong import GongCall, GongClient, iso_timestamp
from .hubspot import HubSpotClient, HubSpotContact, HubSpotDeal

logger = logging.getLogger(__name__)

Role = Literal["admin", "manager", "ae"]

DASHBOARD_DEALS = 10
DASHBOARD_CALLS = 5


class SalesUser(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    hubspot_owner_id: Optional[str] = None
    gong_user_id: Optional[str] = None
    team_id: Optional[str] = None

class Team(BaseModel):
    id: str
    name: str
    members: List[str]
    manager: str


SAMPLE_USERS = [
    SalesUser(id="ae-001", email="john.doe@example.com", name="John Doe", role="ae",
              hubspot_owner_id="hs-owner-001", gong_user_id="gong-user-001", team_id="team-enterprise"),
    SalesUser(id="ae-002", email="sarah.smith@example.com", name="Sarah Smith", role="ae",
              hubspot_owner_id="hs-owner-002", gong_user_id="gong-user-002", team_id="team-enterprise"),
    SalesUser(id="mgr-001", email="mike.manager@example.com", name="Mike Manager", role="manager",
              hubspot_owner_id="hs-owner-003", gong_user_id="gong-user-003", team_id="team-enterprise"),
]
SAMPLE_TEAMS = [
    Team(id="team-enterprise", name="Enterprise Sales Team", members=["ae-001", "ae-002"], manager="mgr-001"),
]


def _now() -> datetime:
    return datetime.now(timezone.utc)

def _pipeline_value(deals: List[HubSpotDeal]) -> float:
    return sum(d.amount_value for d in deals)


class IntegrationService:
    """
    Joins HubSpot deals, Gong calls and the language model into per-user
    views. Users and teams live in memory.
    """

    def __init__(self, hubspot: HubSpotClient, gong: GongClient, ai: AIEngine,
                 silence_threshold_days: int = SILENCE_THRESHOLD_DAYS):
        self.hubspot = hubspot
        self.gong = gong
        self.ai = ai
        self.silence_threshold_days = silence_threshold_days
        self.users: Dict[str, SalesUser] = {u.id: u for u in SAMPLE_USERS}
        self.teams: Dict[str, Team] = {t.id: t for t in SAMPLE_TEAMS}

    @classmethod
    def from_config(cls, cfg: Config) -> "IntegrationService":
        ic = cfg.integrations
        return cls(
            HubSpotClient(ic.hubspot_token, ic.hubspot_base_url, timeout=ic.timeout_seconds),
            GongClient(ic.gong_token, ic.gong_base_url, timeout=ic.timeout_seconds),
            AIEngine(temperature=cfg.llm.temperature),
            silence_threshold_days=cfg.pipeline.silence_threshold_days,
        )

    # -------- users --------
    def get_user(self, user_id: str) -> Optional[SalesUser]:
        return self.users.get(user_id)

    def _require_user(self, user_id: str) -> SalesUser:
        user = self.users.get(user_id)
        if user is None:
            raise LookupError("User not found")
        return user

    def get_team_members(self, team_id: str) -> List[SalesUser]:
        team = self.teams.get(team_id)
        if team is None:
            return []
        return [self.users[m] for m in team.members if m in self.users]

    def get_users_by_role(self, role: str) -> List[SalesUser]:
        return [u for u in self.users.values() if u.role == role]

    # -------- per-user data --------
    def get_user_deals(self, user_id: str) -> List[HubSpotDeal]:
        user = self.users.get(user_id)
        if user is None or not user.hubspot_owner_id:
            return []
        return self.hubspot.search_deals(
            filters=[{"propertyName": "hubspot_owner_id", "operator": "EQ", "value": user.hubspot_owner_id}],
            sorts=[{"propertyName": "hs_lastmodifieddate", "direction": "DESCENDING"}],
            limit=100,
        )

    def get_user_calls(self, user_id: str, days: int = 30) -> List[GongCall]:
        user = self.users.get(user_id)
        if user is None or not user.gong_user_id:
            return []
        now = _now()
        since = iso_timestamp(now - timedelta(days=days))
        return self.gong.get_team_calls([user.gong_user_id], since, iso_timestamp(now))

    def get_user_contacts(self, user_id: str) -> List[HubSpotContact]:
        user = self.users.get(user_id)
        if user is None or not user.hubspot_owner_id:
            return []
        # HubSpot has no owner filter on this endpoint; first page only
        return self.hubspot.get_contacts(limit=50).results

    def get_user_dashboard(self, user_id: str) -> Dict[str, Any]:
        user = self._require_user(user_id)
        deals = self.get_user_deals(user_id)
        calls = self.get_user_calls(user_id)
        pipeline_value = _pipeline_value(deals)
        insights = self.ai.generate_team_insights(deals, calls, "30d")
        return {
            "user": user,
            "metrics": {
                "total_deals": len(deals),
                "total_calls": len(calls),
                "pipeline_value": pipeline_value,
                "avg_deal_size": pipeline_value / len(deals) if deals else 0,
            },
            "deals": deals[:DASHBOARD_DEALS],
            "recent_calls": calls[:DASHBOARD_CALLS],
            "insights": insights,
        }

    # -------- analyses --------
    def analyze_deal(self, deal_id: str, user_id: str) -> Dict[str, Any]:
        self._require_user(user_id)
        deals = self.hubspot.search_deals(
            filters=[{"propertyName": "hs_object_id", "operator": "EQ", "value": deal_id}],
        )
        if not deals:
            raise LookupError("Deal not found")
        deal = deals[0]
        related_calls = self.gong.search_calls_by_crm(deal_id, "hubspot")
        contacts = self.get_user_contacts(user_id)
        analysis = self.ai.analyze_deal(deal, related_calls, contacts)
        return {
            "deal": deal,
            "related_calls": related_calls,
            "analysis": analysis,
            "last_analyzed": _now(),
        }

    def analyze_call(self, call_id: str) -> Dict[str, Any]:
        page = self.gong.get_calls(limit=100)
        call = next((c for c in page.calls if c.meta_data.id == call_id), None)
        if call is None:
            raise LookupError("Call not found")
        transcript = self.gong.get_call_transcript(call_id)
        insights = self.gong.get_call_insights(call_id)
        analysis = self.ai.analyze_call(call, transcript, insights)
        return {
            "call": call,
            "transcript": transcript,
            "insights": insights,
            "analysis": analysis,
            "last_analyzed": _now(),
        }

    def ask_copilot(self, question: str, user_id: str) -> Dict[str, Any]:
        self._require_user(user_id)
        deals = self.get_user_deals(user_id)
        calls = self.get_user_calls(user_id)
        contacts = self.get_user_contacts(user_id)
        answer = self.ai.answer_sales_question(question, deals, calls, contacts)
        return {
            "question": question,
            "answer": answer,
            "context": {
                "deals_count": len(deals),
                "calls_count": len(calls),
                "contacts_count": len(contacts),
            },
            "timestamp": _now(),
        }

    def get_team_performance(self, manager_id: str) -> Dict[str, Any]:
        manager = self.users.get(manager_id)
        if manager is None or manager.role != "manager":
            raise PermissionError("Access denied: Manager role required")
        team = next((t for t in self.teams.values() if t.manager == manager_id), None)
        if team is None:
            raise LookupError("Team not found")

        team_data = []
        all_deals: List[HubSpotDeal] = []
        all_calls: List[GongCall] = []
        for member_id in team.members:
            deals = self.get_user_deals(member_id)
            calls = self.get_user_calls(member_id)
            all_deals.extend(deals)
            all_calls.extend(calls)
            team_data.append({
                "user": self.users.get(member_id),
                "deals": deals,
                "calls": calls,
                "metrics": {
                    "deals_count": len(deals),
                    "calls_count": len(calls),
                    "pipeline_value": _pipeline_value(deals),
                },
            })

        members = len(team.members) or 1
        return {
            "team": team,
            "team_data": team_data,
            "team_insights": self.ai.generate_team_insights(all_deals, all_calls, "30d"),
            "aggregate_metrics": {
                "total_deals": len(all_deals),
                "total_calls": len(all_calls),
                "total_pipeline_value": sum(m["metrics"]["pipeline_value"] for m in team_data),
                "avg_deals_per_rep": len(all_deals) / members,
                "avg_calls_per_rep": len(all_calls) / members,
            },
        }

    def get_silent_deals(self, user_id: str, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """
        A user's deals whose latest Gong call is at least the silence
        threshold old. Deals with no recorded call are never-contacted and
        sort first; the rest follow most neglected first.
        """
        now = now or _now()
        flagged = []
        for deal in self.get_user_deals(user_id):
            calls = self.gong.search_calls_by_crm(deal.id, "hubspot")
            started = [c.started_at for c in calls if c.started_at is not None]
            last_contact = max(started) if started else None
            check = classify_contact(last_contact, now, self.silence_threshold_days)
            if not check.is_silent:
                continue
            recommendation = self.ai.generate_follow_up_recommendations(deal, calls, check.days_since_contact)
            flagged.append((check.days_since_contact, {
                "deal": deal,
                **check.as_dict(),
                "last_contact_type": "call" if last_contact else "none",
                "last_contact_date": last_contact,
                "recommendation": recommendation,
            }))
        flagged.sort(key=lambda pair: pair[0], reverse=True)
        return [item for _, item in flagged]

    def test_connections(self) -> Dict[str, Any]:
        return {
            "hubspot": self.hubspot.test_connection(),
            "gong": self.gong.test_connection(),
            "ai": {"success": True, "message": "AI engine ready"},
            "timestamp": _now(),
        }
