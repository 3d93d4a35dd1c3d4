import json
import math

import pytest
from fastapi import HTTPException

from salespulse.integrations import ai_engine
from salespulse.integrations.ai_engine import AIEngine
from salespulse.integrations.gong import GongCall, GongCallInsight, GongTranscript
from salespulse.integrations.hubspot import HubSpotContact, HubSpotDeal

DEAL = HubSpotDeal.model_validate({"id": "101", "properties": {
    "dealname": "Acme renewal", "amount": "45000", "dealstage": "proposal", "hs_deal_stage_probability": "60",
}})
CALL = GongCall.model_validate({"metaData": {"id": "c-1", "started": "2024-06-10T15:00:00Z", "duration": 30,
                                             "direction": "Outbound"},
                                "parties": [{"id": "p1"}, {"id": "p2"}]})
CONTACT = HubSpotContact.model_validate({"id": "7", "properties": {"email": "a@b.test"}})

DEAL_ANALYSIS = {
    "dealId": "101", "riskScore": 35, "riskFactors": ["single threaded"],
    "nextBestActions": [{"action": "Book exec sponsor", "priority": "high", "reasoning": "one contact"}],
    "healthIndicators": {"engagement": 70, "momentum": 55, "stakeholderAlignment": 40},
    "predictedCloseDate": "2024-07-30", "closeProbability": 60,
}


class FakeLLM:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def __call__(self, messages, system=None, temperature=None, json_mode=False):
        self.calls.append({"messages": messages, "system": system, "temperature": temperature, "json_mode": json_mode})
        return self.reply

    @property
    def prompt(self):
        return self.calls[-1]["messages"][-1]["content"]


@pytest.fixture
def fake_llm(monkeypatch):
    def install(reply):
        fake = FakeLLM(reply)
        monkeypatch.setattr(ai_engine.llm, "chat_completion", fake)
        return fake
    return install


def test_analyze_deal_assembles_context(fake_llm):
    fake = fake_llm(json.dumps(DEAL_ANALYSIS))
    analysis = AIEngine().analyze_deal(DEAL, [CALL], [CONTACT])

    assert analysis.deal_id == "101"
    assert analysis.health_indicators.stakeholder_alignment == 40
    assert analysis.next_best_actions[0].priority == "high"

    call = fake.calls[0]
    assert call["json_mode"] is True
    assert call["system"] == ai_engine.DEAL_ANALYST
    assert "- Name: Acme renewal" in fake.prompt
    assert "- Amount: $45000" in fake.prompt
    assert "- Probability: 60%" in fake.prompt
    assert "Related Calls: 1 calls" in fake.prompt
    assert "2024-06-10T15:00:00Z: 30.0min" in fake.prompt
    assert "Contacts: 1 contacts" in fake.prompt
    assert '"dealId": "101"' in fake.prompt


def test_out_of_range_scores_are_rejected(fake_llm):
    fake_llm(json.dumps({**DEAL_ANALYSIS, "riskScore": 140}))
    with pytest.raises(HTTPException) as err:
        AIEngine().analyze_deal(DEAL, [], [])
    assert err.value.status_code == 502


def test_non_json_reply_is_rejected(fake_llm):
    fake_llm("Sure! Here is the analysis")
    with pytest.raises(HTTPException) as err:
        AIEngine().analyze_deal(DEAL, [], [])
    assert err.value.status_code == 502


def test_analyze_call(fake_llm):
    fake = fake_llm(json.dumps({
        "callId": "c-1", "sentiment": "positive", "keyInsights": ["budget approved"],
        "objections": [{"objection": "price", "response": "ROI deck", "resolved": True}],
        "nextSteps": ["send contract"],
        "coachingPoints": [{"area": "discovery", "feedback": "good", "improvement": "ask about timeline"}],
        "talkRatio": {"prospect": 55, "rep": 45},
    }))
    transcript = GongTranscript.model_validate({"callId": "c-1", "transcript": [
        {"speakerId": "s1", "sentences": [{"start": 0, "end": 1, "text": "hi"}]},
    ]})
    insights = GongCallInsight.model_validate({"callId": "c-1", "insights": {
        "sentiment": {"overall": "positive"}, "topics": [{"name": "Pricing", "confidence": 0.9}],
    }})
    analysis = AIEngine().analyze_call(CALL, transcript, insights)
    assert analysis.talk_ratio.prospect == 55
    assert analysis.objections[0].resolved is True
    assert "- Participants: 2" in fake.prompt
    assert "- Direction: Outbound" in fake.prompt
    assert "Transcript Summary: 1 segments" in fake.prompt
    assert "Topics: Pricing" in fake.prompt
    assert fake.calls[0]["system"] == ai_engine.CALL_COACH


def test_team_insights_include_stage_distribution(fake_llm):
    fake = fake_llm(json.dumps({
        "period": "30d",
        "teamMetrics": {"totalCalls": 1, "avgCallDuration": 30, "conversionRate": 20, "avgDealSize": 45000},
        "topPerformers": [{"userId": "ae-001", "name": "John Doe", "metric": "calls", "value": 1}],
        "riskAlerts": [{"type": "deal_stagnant", "description": "no contact", "dealId": "101"}],
        "recommendations": [{"category": "pipeline", "suggestion": "multi-thread", "impact": "medium"}],
    }))
    other = HubSpotDeal.model_validate({"id": "102", "properties": {}})
    insight = AIEngine().generate_team_insights([DEAL, DEAL, other], [CALL])
    assert insight.risk_alerts[0].deal_id == "101"
    assert "proposal: 2" in fake.prompt
    assert "unknown: 1" in fake.prompt
    assert "Deals: 3 total" in fake.prompt
    assert '"totalCalls": 1' in fake.prompt


def test_unknown_risk_alert_type_is_rejected(fake_llm):
    fake_llm(json.dumps({
        "period": "30d",
        "teamMetrics": {"totalCalls": 0, "avgCallDuration": 0, "conversionRate": 0, "avgDealSize": 0},
        "topPerformers": [], "recommendations": [],
        "riskAlerts": [{"type": "on_fire", "description": "?"}],
    }))
    with pytest.raises(HTTPException):
        AIEngine().generate_team_insights([], [])


def test_answer_sales_question(fake_llm):
    fake = fake_llm("Acme renewal is your largest open deal.")
    answer = AIEngine().answer_sales_question("What is my biggest deal?", [DEAL], [CALL], [CONTACT])
    assert answer == "Acme renewal is your largest open deal."
    assert fake.calls[0]["json_mode"] is False
    assert "- 1 deals in pipeline" in fake.prompt
    assert "- Acme renewal: $45000 (proposal)" in fake.prompt
    assert fake.prompt.rstrip().endswith("Question: What is my biggest deal?")


def test_empty_answer_falls_back(fake_llm):
    fake_llm("")
    assert AIEngine().answer_sales_question("?", [], [], []) == ai_engine.NO_ANSWER


def test_follow_up_recommendations_split_lines(fake_llm):
    fake = fake_llm("1. Call the champion\n\n2. Send case study\n   \n3. Offer a pilot\n")
    recs = AIEngine().generate_follow_up_recommendations(DEAL, [CALL], 9)
    assert recs == ["1. Call the champion", "2. Send case study", "3. Offer a pilot"]
    assert fake.calls[0]["temperature"] == 0.4
    assert "Days since last contact: 9" in fake.prompt
    assert "Recent calls: 1" in fake.prompt


def test_follow_up_for_never_contacted_deal(fake_llm):
    fake = fake_llm("Reach out")
    AIEngine().generate_follow_up_recommendations(DEAL, [], math.inf)
    assert "Days since last contact: never contacted" in fake.prompt
