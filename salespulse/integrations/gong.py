from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .base import ApiClient, IntegrationError

logger = logging.getLogger(__name__)


class GongModel(BaseModel):
    # Gong speaks camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GongCallMeta(GongModel):
    id: str
    url: Optional[str] = None
    title: Optional[str] = None
    scheduled: Optional[str] = None
    started: Optional[str] = None
    ended: Optional[str] = None
    duration: Optional[float] = None
    primary_user_id: Optional[str] = None
    direction: Optional[str] = None
    system: Optional[str] = None
    scope: Optional[str] = None
    media: Optional[str] = None
    language: Optional[str] = None
    workspace_id: Optional[str] = None

class ScheduledMeeting(GongModel):
    id: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None

class CrmObject(GongModel):
    id: str
    object_type: str
    object_fields: Dict[str, Any] = {}

class GongCallContext(GongModel):
    scheduled_meeting: Optional[ScheduledMeeting] = None
    crm_context: Optional[List[CrmObject]] = None

class PartyContext(GongModel):
    system: str
    id: str

class GongParty(GongModel):
    id: str
    name: Optional[str] = None
    title: Optional[str] = None
    affiliation: Optional[str] = None
    email_address: Optional[str] = None
    phone_number: Optional[str] = None
    speaker_id: Optional[str] = None
    context: Optional[List[PartyContext]] = None

class GongCall(GongModel):
    meta_data: GongCallMeta
    context: Optional[GongCallContext] = None
    parties: Optional[List[GongParty]] = None

    @property
    def started_at(self) -> Optional[datetime]:
        return parse_timestamp(self.meta_data.started)


class Sentence(GongModel):
    start: float
    end: float
    text: str

class TranscriptSegment(GongModel):
    speaker_id: str
    topic: Optional[str] = None
    sentences: List[Sentence]

class GongTranscript(GongModel):
    call_id: str
    transcript: List[TranscriptSegment]

    def text(self) -> str:
        return "\n".join(s.text for seg in self.transcript for s in seg.sentences)


class SentimentSegment(GongModel):
    start: float
    end: float
    sentiment: str
    confidence: float

class CallSentiment(GongModel):
    overall: Optional[str] = None
    segments: Optional[List[SentimentSegment]] = None

class Mention(GongModel):
    start: float
    end: float
    text: str

class CallTopic(GongModel):
    name: str
    confidence: float
    mentions: List[Mention] = []

class CallKeyword(GongModel):
    word: str
    count: int
    confidence: float

class CallQuestion(GongModel):
    speaker: str
    question: str
    timestamp: float

class CallNextStep(GongModel):
    speaker: str
    action: str
    timestamp: float

class CallInsights(GongModel):
    sentiment: Optional[CallSentiment] = None
    topics: Optional[List[CallTopic]] = None
    keywords: Optional[List[CallKeyword]] = None
    questions: Optional[List[CallQuestion]] = None
    next_steps: Optional[List[CallNextStep]] = None

class GongCallInsight(GongModel):
    call_id: str
    insights: CallInsights


class GongCallPage(BaseModel):
    calls: List[GongCall]
    records: Dict[str, Any] = {}
    cursor: Optional[str] = None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def iso_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _window(days: int, from_dt: Optional[str], to_dt: Optional[str]) -> Dict[str, str]:
    now = datetime.now(timezone.utc)
    return {
        "fromDateTime": from_dt or iso_timestamp(now - timedelta(days=days)),
        "toDateTime": to_dt or iso_timestamp(now),
    }


class GongClient(ApiClient):
    service = "Gong"

    def __init__(self, access_token: str, base_url: str = "https://api.gong.io/v2", **kwargs):
        super().__init__(access_token, base_url, **kwargs)

    def _calls(self, body: Dict[str, Any]) -> Dict[str, Any]:
        data = self._request("POST", "/calls", json=body)
        data["calls"] = [GongCall.model_validate(c) for c in data.get("calls") or []]
        return data

    def get_calls(
        self,
        from_datetime: Optional[str] = None,
        to_datetime: Optional[str] = None,
        cursor: Optional[str] = None,
        limit: int = 100,
        content_selector: Optional[Dict[str, bool]] = None,
    ) -> GongCallPage:
        """Calls in a date window; defaults to the last 30 days."""
        body: Dict[str, Any] = {
            "filter": _window(30, from_datetime, to_datetime),
            "contentSelector": content_selector or {
                "includeCrmContext": True,
                "includeParties": True,
                "includeMedia": False,
            },
            "limit": limit,
        }
        if cursor:
            body["cursor"] = cursor
        data = self._calls(body)
        return GongCallPage(calls=data["calls"], records=data.get("records") or {}, cursor=data.get("cursor"))

    def get_call_transcript(self, call_id: str) -> GongTranscript:
        data = self._request("GET", f"/calls/{call_id}/transcript")
        return GongTranscript.model_validate({"callId": call_id, "transcript": data.get("callTranscript") or []})

    def get_call_insights(self, call_id: str) -> GongCallInsight:
        """
        Sentiment, topics and keywords from the extensive call endpoint.
        Missing analytics never fail the caller: an unavailable endpoint
        yields empty insights.
        """
        try:
            data = self._request("GET", f"/calls/{call_id}/extensive")
        except IntegrationError as e:
            logger.warning("No insights for call %s: %s", call_id, e)
            data = {}
        return GongCallInsight.model_validate({
            "callId": call_id,
            "insights": {
                "sentiment": data.get("sentiment") or {},
                "topics": data.get("topics") or [],
                "keywords": data.get("keywords") or [],
            },
        })

    def search_calls_by_crm(self, crm_id: str, crm_system: str = "hubspot") -> List[GongCall]:
        body = {
            "filter": {"crmContext": {"id": crm_id, "system": crm_system}},
            "contentSelector": {"includeCrmContext": True, "includeParties": True},
        }
        return self._calls(body)["calls"]

    def get_user_stats(self, user_id: str, from_date: str, to_date: str) -> List[Dict[str, Any]]:
        body = {"filter": {"fromDateTime": from_date, "toDateTime": to_date, "users": [user_id]}}
        return self._request("POST", "/stats/activity/detailed", json=body).get("records") or []

    def get_team_calls(
        self,
        user_ids: List[str],
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> List[GongCall]:
        """Calls hosted by any of ``user_ids``; defaults to the last 7 days."""
        body = {
            "filter": {**_window(7, from_date, to_date), "users": user_ids},
            "contentSelector": {"includeCrmContext": True, "includeParties": True},
        }
        return self._calls(body)["calls"]

    def _ping(self) -> None:
        self._request("POST", "/calls", json={"filter": _window(1, None, None), "limit": 1})
