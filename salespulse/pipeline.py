from __future__ import annotations
"""
Pipeline aggregation over already-fetched lead/deal collections.

Every function here is pure: callers hand in the records (and ``now`` where
elapsed time matters) and get plain data back. Empty input always yields
zeroed results.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .schemas import Deal, DealStage, Lead, LeadStatus
from .scoring import score_band

SILENCE_THRESHOLD_DAYS = 5
HOT_LEAD_SCORE = 80
AT_RISK_HEALTH_SCORE = 60

ACTIVE_STAGES: Tuple[str, ...] = (
    DealStage.QUALIFIED.value,
    DealStage.PROPOSAL.value,
    DealStage.NEGOTIATION.value,
    DealStage.CLOSING.value,
)

_DAY = timedelta(days=1)

T = TypeVar("T")


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _as_utc(ts: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _stage(deal: Deal) -> str:
    return getattr(deal.stage, "value", deal.stage)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def to_major_units(minor: float) -> int:
    """Cents to whole currency units, rounding halves up."""
    return _round_half_up(minor / 100)


def newest_first(records: Iterable[T]) -> List[T]:
    return sorted(records, key=lambda r: (_as_utc(r.created_at), r.id), reverse=True)


# ---------------------------------------------------------------------
# Staleness
# ---------------------------------------------------------------------
@dataclass
class SilenceCheck:
    is_silent: bool
    days_since_contact: float  # math.inf when never contacted

    @property
    def never_contacted(self) -> bool:
        return math.isinf(self.days_since_contact)

    def as_dict(self) -> Dict[str, Any]:
        """JSON-safe form: infinity has no JSON spelling, so it becomes null."""
        return {
            "is_silent": self.is_silent,
            "days_since_contact": None if self.never_contacted else int(self.days_since_contact),
            "never_contacted": self.never_contacted,
        }


def days_since(last_contact: Optional[datetime], now: datetime) -> float:
    """
    Whole days elapsed, floored. Missing contact is infinitely stale; a
    timestamp in the future counts as contacted today (0).
    """
    if last_contact is None:
        return math.inf
    elapsed = (_as_utc(now) - _as_utc(last_contact)) // _DAY
    return max(0, elapsed)


def classify_contact(
    last_contact: Optional[datetime], now: datetime, threshold_days: int = SILENCE_THRESHOLD_DAYS
) -> SilenceCheck:
    days = days_since(last_contact, now)
    return SilenceCheck(is_silent=days >= threshold_days, days_since_contact=days)


def classify_silence(deal: Any, now: datetime, threshold_days: int = SILENCE_THRESHOLD_DAYS) -> SilenceCheck:
    return classify_contact(getattr(deal, "last_contact_date", None), now, threshold_days)


def silent_deals(
    deals: Iterable[Deal],
    now: datetime,
    threshold_days: int = SILENCE_THRESHOLD_DAYS,
) -> List[Tuple[Deal, SilenceCheck]]:
    """Silent deals, most neglected first (never-contacted deals lead)."""
    flagged = []
    for deal in deals:
        check = classify_silence(deal, now, threshold_days)
        if check.is_silent:
            flagged.append((deal, check))
    # stable sort keeps input order among equally stale deals
    flagged.sort(key=lambda pair: pair[1].days_since_contact, reverse=True)
    return flagged


# ---------------------------------------------------------------------
# Stage summary & portfolio metrics
# ---------------------------------------------------------------------
@dataclass
class StageSummary:
    stage: str
    count: int = 0
    total_value: int = 0
    deals: List[Deal] = field(default_factory=list)
    top_deals: List[Deal] = field(default_factory=list)


def summarize_by_stage(
    deals: Iterable[Deal],
    stages: Sequence[str] = ACTIVE_STAGES,
    top_n: Optional[int] = None,
) -> List[StageSummary]:
    """
    One entry per requested stage in the given order, empty stages included.
    ``top_deals`` holds the first ``top_n`` deals of the stage in input order
    (all of them when ``top_n`` is None).
    """
    buckets: Dict[str, StageSummary] = {s: StageSummary(stage=s) for s in stages}
    for deal in deals:
        bucket = buckets.get(_stage(deal))
        if bucket is None:
            continue
        bucket.count += 1
        bucket.total_value += deal.value
        bucket.deals.append(deal)
    for bucket in buckets.values():
        bucket.top_deals = bucket.deals if top_n is None else bucket.deals[:top_n]
    return [buckets[s] for s in stages]


@dataclass
class PortfolioMetrics:
    active_leads: int = 0
    pipeline_value: int = 0
    win_rate: int = 0
    avg_deal_size: int = 0


def compute_metrics(leads: Iterable[Lead], deals: Iterable[Deal]) -> PortfolioMetrics:
    leads = list(leads)
    deals = list(deals)

    active = sum(1 for lead in leads if getattr(lead.status, "value", lead.status) != LeadStatus.LOST.value)
    pipeline_cents = sum(d.value for d in deals if _stage(d) != DealStage.LOST.value)
    won = [d for d in deals if _stage(d) == DealStage.WON.value]

    win_rate = _round_half_up(100 * len(won) / len(deals)) if deals else 0
    avg_size = _round_half_up(sum(d.value for d in won) / len(won) / 100) if won else 0

    return PortfolioMetrics(
        active_leads=active,
        pipeline_value=to_major_units(pipeline_cents),
        win_rate=win_rate,
        avg_deal_size=avg_size,
    )


# ---------------------------------------------------------------------
# Dashboard views
# ---------------------------------------------------------------------
def filter_leads(leads: Iterable[Lead], term: Optional[str]) -> List[Lead]:
    leads = list(leads)
    needle = (term or "").strip().lower()
    if not needle:
        return leads
    return [
        lead for lead in leads
        if needle in lead.company_name.lower() or needle in (lead.industry or "").lower()
    ]


def hot_leads(leads: Iterable[Lead], min_score: int = HOT_LEAD_SCORE) -> List[Lead]:
    return [lead for lead in leads if (lead.ai_score or 0) >= min_score]


def at_risk_deals(deals: Iterable[Deal], max_health: int = AT_RISK_HEALTH_SCORE) -> List[Deal]:
    return [d for d in deals if (d.health_score or 0) < max_health]


def deal_heat(deal: Deal) -> str:
    return score_band(deal.health_score)


def _name_list(names: List[str], shown: int) -> str:
    head = ", ".join(names[:shown])
    if len(names) > shown:
        head += f" and {len(names) - shown} more"
    return head


@dataclass
class Insights:
    silent: List[Tuple[Deal, SilenceCheck]]
    hot: List[Lead]
    at_risk: List[Deal]
    headlines: Dict[str, str]

    def counts(self) -> Dict[str, int]:
        return {"silent": len(self.silent), "hot_leads": len(self.hot), "at_risk": len(self.at_risk)}


def build_insights(
    leads: Iterable[Lead],
    deals: Iterable[Deal],
    now: datetime,
    threshold_days: int = SILENCE_THRESHOLD_DAYS,
    min_score: int = HOT_LEAD_SCORE,
    max_health: int = AT_RISK_HEALTH_SCORE,
) -> Insights:
    deals = list(deals)
    silent = silent_deals(deals, now, threshold_days)
    hot = hot_leads(leads, min_score)
    risky = at_risk_deals(deals, max_health)

    headlines = {
        "silent": (
            f"{len(silent)} deals haven't been contacted in {threshold_days}+ days. "
            f"{_name_list([d.company_name for d, _ in silent], 3)} need immediate attention."
        ),
        "hot_leads": (
            f"{len(hot)} leads scored {min_score}+ in qualification. "
            f"{_name_list([lead.company_name for lead in hot], 2)} have high budget and immediate timeline."
        ),
        "at_risk": (
            f"{len(risky)} deals showing decreased engagement scores. "
            "Consider value reinforcement strategy and stakeholder mapping."
        ),
    }
    return Insights(silent=silent, hot=hot, at_risk=risky, headlines=headlines)
