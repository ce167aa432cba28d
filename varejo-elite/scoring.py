"""
Performance scoring and tier resolution.

All functions here are pure. Malformed numbers (NaN, infinity, non-numeric)
are treated as 0 so that every store resolves to some tier.

Zero-target rule: a KPI with `target == 0` has no defined ratio. It counts as
0 when `actual <= 0` and as `config.ZERO_TARGET_RATIO` (fully achieved) when
`actual > 0`.

Range: a ratio too large to represent saturates at `config.MAX_COMPLETION_RATIO`
(same sign), and the aggregate bounds each ratio to that range before
averaging, so no intermediate value overflows.

Rounding: aggregate and display percentages round half up (`floor(x + 0.5)`),
so 89.5 becomes 90.
"""
import math
from typing import Dict, List, Optional

from pydantic import BaseModel

import config
from models import Tier
from schemas import KPI, Store


def _clean(value) -> float:
    """Normalizes a raw numeric input: NaN, infinities and non-numbers become 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _bounded(ratio: float) -> float:
    cap = config.MAX_COMPLETION_RATIO
    return max(-cap, min(cap, ratio))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def completion_ratio(kpi: KPI) -> float:
    """`actual / target`, unclamped. See the module docstring for target 0."""
    target = _clean(kpi.target)
    actual = _clean(kpi.actual)
    if target == 0:
        return config.ZERO_TARGET_RATIO if actual > 0 else 0.0
    ratio = actual / target
    if math.isinf(ratio):
        return math.copysign(config.MAX_COMPLETION_RATIO, ratio)
    return ratio


def display_percent(kpi: KPI) -> int:
    """Completion as an integer percent for progress bars, capped to 0..100."""
    percent = max(0.0, min(100.0, completion_ratio(kpi) * 100))
    return _round_half_up(percent)


def aggregate_performance(store: Store) -> int:
    """
    Unweighted mean of the KPI completion ratios as an integer percent.
    A store without KPIs scores 0. A negative mean is reported as 0.
    """
    if not store.kpis:
        return 0
    total = sum(_bounded(completion_ratio(kpi)) for kpi in store.kpis)
    performance = _round_half_up((total / len(store.kpis)) * 100)
    return max(0, performance)


def resolve_tier(performance: Optional[float]) -> Tier:
    score = _clean(performance)
    for threshold, tier in config.TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return Tier.NONE


class KPIScore(BaseModel):
    kpi_id: str
    ratio: float
    display_percent: int


class StoreEvaluation(BaseModel):
    store_id: str
    performance: int
    tier: Tier
    kpis: List[KPIScore]

    def ratios(self) -> Dict[str, float]:
        return {score.kpi_id: score.ratio for score in self.kpis}


def evaluate_store(store: Store) -> StoreEvaluation:
    performance = aggregate_performance(store)
    return StoreEvaluation(
        store_id=store.id,
        performance=performance,
        tier=resolve_tier(performance),
        kpis=[
            KPIScore(kpi_id=kpi.id, ratio=completion_ratio(kpi), display_percent=display_percent(kpi))
            for kpi in store.kpis
        ],
    )
