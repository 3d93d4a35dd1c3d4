from __future__ import annotations
"""
Deterministic lead qualification score.

Base 50 plus one contribution per dimension, clamped to [0, 100]:

    budget      $150K+ 25 | $75K - $150K 20 | $30K - $75K 15 | $15K - $30K 10
    timeline    Immediate 20 | 1-3 months 15 | 3-6 months 10
    employees   1000+ 15 | 201-1000 12 | 51-200 8 | 11-50 5
    industry    Healthcare / Technology / Finance 10

Budget and employee tiers match by containment of the full canonical label,
checked highest tier first, so "Budget: $150K+" still lands in the top tier
while "$75K - $150K" never does. Timeline and industry match exactly.
Anything unrecognised contributes 0.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

BUDGET_TIERS: Sequence[Tuple[str, int]] = (
    ("$150K+", 25),
    ("$75K - $150K", 20),
    ("$30K - $75K", 15),
    ("$15K - $30K", 10),
)
TIMELINE_TIERS: Sequence[Tuple[str, int]] = (
    ("Immediate", 20),
    ("1-3 months", 15),
    ("3-6 months", 10),
)
EMPLOYEE_TIERS: Sequence[Tuple[str, int]] = (
    ("1000+", 15),
    ("201-1000", 12),
    ("51-200", 8),
    ("11-50", 5),
)
HIGH_VALUE_INDUSTRIES = ("Healthcare", "Technology", "Finance")
INDUSTRY_POINTS = 10

SCORING_FIELDS = ("budget_range", "timeline", "employee_count", "industry")


@dataclass
class Contribution:
    factor: str
    matched: Optional[str]
    points: int


@dataclass
class ScoreBreakdown:
    score: int
    contributions: List[Contribution] = field(default_factory=list)


def _contained_tier(value: Optional[str], tiers: Sequence[Tuple[str, int]]) -> Tuple[Optional[str], int]:
    if not value:
        return None, 0
    for label, points in tiers:
        if label in value:
            return label, points
    return None, 0


def _exact_tier(value: Optional[str], tiers: Sequence[Tuple[str, int]]) -> Tuple[Optional[str], int]:
    for label, points in tiers:
        if value == label:
            return label, points
    return None, 0


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def explain_ai_score(
    budget_range: Optional[str] = None,
    timeline: Optional[str] = None,
    employee_count: Optional[str] = None,
    industry: Optional[str] = None,
) -> ScoreBreakdown:
    budget = _contained_tier(budget_range, BUDGET_TIERS)
    when = _exact_tier(timeline, TIMELINE_TIERS)
    size = _contained_tier(employee_count, EMPLOYEE_TIERS)
    fit = (industry, INDUSTRY_POINTS) if industry in HIGH_VALUE_INDUSTRIES else (None, 0)

    contributions = [
        Contribution("budget_range", *budget),
        Contribution("timeline", *when),
        Contribution("employee_count", *size),
        Contribution("industry", *fit),
    ]
    total = BASE_SCORE + sum(c.points for c in contributions)
    return ScoreBreakdown(score=clamp_score(total), contributions=contributions)


def calculate_ai_score(
    budget_range: Optional[str] = None,
    timeline: Optional[str] = None,
    employee_count: Optional[str] = None,
    industry: Optional[str] = None,
) -> int:
    return explain_ai_score(budget_range, timeline, employee_count, industry).score


def explain_score(lead: Any) -> ScoreBreakdown:
    """Breakdown for any lead-shaped object (LeadCreate, Lead, ORM row...)."""
    return explain_ai_score(**{f: getattr(lead, f, None) for f in SCORING_FIELDS})


def score_lead(lead: Any) -> int:
    return explain_score(lead).score


def score_band(score: int) -> str:
    if score >= 80:
        return "hot"
    if score >= 60:
        return "warm"
    return "cold"
