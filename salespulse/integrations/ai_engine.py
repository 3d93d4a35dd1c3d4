from __future__ import annotations
import json
import logging
import math
from collections import Counter
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional

from fastapi import HTTPException
from jinja2 import Template
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .. import llm
from .gong import GongCall, GongCallInsight, GongTranscript
from .hubspot import HubSpotContact, HubSpotDeal

logger = logging.getLogger(__name__)

PROMPT_DIR = Path(__file__).resolve().parents[1] / "prompts"

DEAL_ANALYST = "You are an expert sales analyst. Analyze the deal data and provide actionable insights in JSON format."
CALL_COACH = "You are an expert sales coach. Analyze the call and provide coaching insights in JSON format."
SALES_OPS = "You are a sales operations expert. Analyze team performance and provide strategic insights in JSON format."
ASSISTANT = (
    "You are an AI sales assistant with access to CRM and call data. "
    "Provide accurate, actionable answers based on the data provided."
)
STRATEGIST = "You are a sales strategist. Provide specific, actionable follow-up recommendations."

FOLLOW_UP_TEMPERATURE = 0.4
NO_ANSWER = "I couldn't process that question."

Level = Literal["high", "medium", "low"]
Score = Annotated[float, Field(ge=0, le=100)]


class AnalysisModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NextBestAction(AnalysisModel):
    action: str
    priority: Level
    reasoning: str

class HealthIndicators(AnalysisModel):
    engagement: Score
    momentum: Score
    stakeholder_alignment: Score

class DealAnalysis(AnalysisModel):
    deal_id: str
    risk_score: Score
    risk_factors: List[str]
    next_best_actions: List[NextBestAction]
    health_indicators: HealthIndicators
    predicted_close_date: Optional[str] = None
    close_probability: Score


class Objection(AnalysisModel):
    objection: str
    response: str
    resolved: bool

class CoachingPoint(AnalysisModel):
    area: str
    feedback: str
    improvement: str

class TalkRatio(AnalysisModel):
    prospect: float
    rep: float

class CallAnalysis(AnalysisModel):
    call_id: str
    sentiment: Literal["positive", "neutral", "negative"]
    key_insights: List[str]
    objections: List[Objection]
    next_steps: List[str]
    coaching_points: List[CoachingPoint]
    talk_ratio: TalkRatio


class TeamMetrics(AnalysisModel):
    total_calls: float
    avg_call_duration: float
    conversion_rate: float
    avg_deal_size: float

class TopPerformer(AnalysisModel):
    user_id: str
    name: str
    metric: str
    value: float

class RiskAlert(AnalysisModel):
    type: Literal["deal_stagnant", "low_activity", "negative_sentiment"]
    description: str
    deal_id: Optional[str] = None
    user_id: Optional[str] = None

class Recommendation(AnalysisModel):
    category: str
    suggestion: str
    impact: Level

class TeamInsight(AnalysisModel):
    period: str
    team_metrics: TeamMetrics
    top_performers: List[TopPerformer]
    risk_alerts: List[RiskAlert]
    recommendations: List[Recommendation]


def _load_file(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def render_prompt(name: str, **context: Any) -> str:
    return Template(_load_file(PROMPT_DIR / f"{name}.j2")).render(**context)

def stage_distribution(deals: List[HubSpotDeal]) -> Dict[str, int]:
    return dict(Counter(d.properties.dealstage or "unknown" for d in deals))


class AIEngine:
    """Language-model analyses over HubSpot and Gong records."""

    def __init__(self, temperature: Optional[float] = None):
        self.temperature = temperature

    def _ask_json(self, system: str, prompt: str, model: type[AnalysisModel]) -> Any:
        text = llm.chat_completion(
            [{"role": "user", "content": prompt}],
            system=system,
            temperature=self.temperature,
            json_mode=True,
        )
        try:
            return model.model_validate(json.loads(text or "{}"))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Model returned an invalid %s: %s", model.__name__, e)
            raise HTTPException(status_code=502, detail=f"Invalid {model.__name__} from language model")

    def analyze_deal(self, deal: HubSpotDeal, related_calls: List[GongCall],
                     contacts: List[HubSpotContact]) -> DealAnalysis:
        prompt = render_prompt("deal_analysis", deal=deal, calls=related_calls, contacts=contacts)
        return self._ask_json(DEAL_ANALYST, prompt, DealAnalysis)

    def analyze_call(self, call: GongCall, transcript: GongTranscript,
                     insights: GongCallInsight) -> CallAnalysis:
        prompt = render_prompt("call_analysis", call=call, transcript=transcript, insights=insights)
        return self._ask_json(CALL_COACH, prompt, CallAnalysis)

    def generate_team_insights(self, deals: List[HubSpotDeal], calls: List[GongCall],
                               timeframe: str = "30d") -> TeamInsight:
        prompt = render_prompt(
            "team_insight", deals=deals, calls=calls, timeframe=timeframe,
            stages=stage_distribution(deals),
        )
        return self._ask_json(SALES_OPS, prompt, TeamInsight)

    def answer_sales_question(self, question: str, deals: List[HubSpotDeal],
                              calls: List[GongCall], contacts: List[HubSpotContact]) -> str:
        prompt = render_prompt("sales_question", question=question, deals=deals, calls=calls, contacts=contacts)
        text = llm.chat_completion(
            [{"role": "user", "content": prompt}],
            system=ASSISTANT,
            temperature=self.temperature,
        )
        return text or NO_ANSWER

    def generate_follow_up_recommendations(self, deal: HubSpotDeal, recent_calls: List[GongCall],
                                           days_since_last_contact: float) -> List[str]:
        days_label = "never contacted" if math.isinf(days_since_last_contact) else int(days_since_last_contact)
        prompt = render_prompt("follow_up", deal=deal, calls=recent_calls, days_label=days_label)
        text = llm.chat_completion(
            [{"role": "user", "content": prompt}],
            system=STRATEGIST,
            temperature=FOLLOW_UP_TEMPERATURE,
        )
        return [line.strip() for line in text.splitlines() if line.strip()]
