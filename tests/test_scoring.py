import itertools

import pytest

from salespulse.schemas import LeadCreate
from salespulse.scoring import (
    BUDGET_TIERS, EMPLOYEE_TIERS, TIMELINE_TIERS,
    calculate_ai_score, explain_ai_score, explain_score, score_band, score_lead,
)

BUDGETS = [None, "$5K - $15K", "$15K - $30K", "$30K - $75K", "$75K - $150K", "$150K+"]
TIMELINES = [None, "6+ months", "3-6 months", "1-3 months", "Immediate"]
EMPLOYEES = [None, "1-10", "11-50", "51-200", "201-1000", "1000+"]
INDUSTRIES = [None, "Retail", "Manufacturing", "Healthcare", "Technology", "Finance"]


def test_score_stays_in_bounds_over_every_tier():
    for combo in itertools.product(BUDGETS, TIMELINES, EMPLOYEES, INDUSTRIES):
        assert 0 <= calculate_ai_score(*combo) <= 100


def test_top_tiers_clamp_to_100():
    assert calculate_ai_score("$150K+", "Immediate", "1000+", "Healthcare") == 100


def test_empty_lead_scores_base():
    assert calculate_ai_score() == 50


@pytest.mark.parametrize("ladder, position", [
    (BUDGETS, 0),
    (TIMELINES, 1),
    (EMPLOYEES, 2),
])
def test_raising_one_dimension_never_lowers_score(ladder, position):
    others = [BUDGETS, TIMELINES, EMPLOYEES, INDUSTRIES]
    others.pop(position)
    for fixed in itertools.product(*others):
        scores = []
        for value in ladder:
            args = list(fixed)
            args.insert(position, value)
            scores.append(calculate_ai_score(*args))
        assert scores == sorted(scores)


def test_score_is_deterministic():
    args = ("$30K - $75K", "1-3 months", "51-200", "Technology")
    assert calculate_ai_score(*args) == calculate_ai_score(*args) == 50 + 15 + 15 + 8 + 10


def test_each_tier_contributes_its_points():
    for label, points in BUDGET_TIERS:
        assert calculate_ai_score(budget_range=label) == 50 + points
    for label, points in TIMELINE_TIERS:
        assert calculate_ai_score(timeline=label) == 50 + points
    for label, points in EMPLOYEE_TIERS:
        assert calculate_ai_score(employee_count=label) == 50 + points


def test_mid_budget_tier_is_not_mistaken_for_top_tier():
    # "$75K - $150K" contains "$150K" but not "$150K+"
    assert calculate_ai_score(budget_range="$75K - $150K") == 70


def test_budget_matches_by_containment():
    assert calculate_ai_score(budget_range="Budget: $150K+ per year") == 75


def test_timeline_requires_exact_match():
    assert calculate_ai_score(timeline="immediate") == 50
    assert calculate_ai_score(timeline="Immediate ") == 50


def test_industry_requires_exact_match():
    assert calculate_ai_score(industry="Finance") == 60
    assert calculate_ai_score(industry="Financial Services") == 50


def test_unknown_values_contribute_nothing():
    assert calculate_ai_score("lots", "someday", "many", "Space") == 50


def test_breakdown_lists_every_factor():
    breakdown = explain_ai_score("$15K - $30K", "6+ months", "11-50", "Technology")
    assert breakdown.score == 75
    by_factor = {c.factor: c for c in breakdown.contributions}
    assert by_factor["budget_range"].matched == "$15K - $30K"
    assert by_factor["budget_range"].points == 10
    assert by_factor["timeline"].matched is None
    assert by_factor["timeline"].points == 0
    assert by_factor["employee_count"].points == 5
    assert by_factor["industry"].points == 10


def test_score_lead_reads_lead_attributes():
    lead = LeadCreate(company_name="NutriCorp Health", industry="Healthcare",
                      employee_count="51-200", budget_range="$30K - $75K", timeline="Immediate")
    assert score_lead(lead) == 50 + 15 + 20 + 8 + 10
    assert explain_score(lead).score == score_lead(lead)


@pytest.mark.parametrize("score, band", [(100, "hot"), (80, "hot"), (79, "warm"), (60, "warm"), (59, "cold"), (0, "cold")])
def test_score_band(score, band):
    assert score_band(score) == band
