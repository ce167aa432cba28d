import math

import pytest

from conftest import make_store
from models import KPICategory, Tier, TIER_ORDER
from schemas import KPI
from scoring import (
    aggregate_performance,
    completion_ratio,
    display_percent,
    evaluate_store,
    resolve_tier,
)


def _kpi(target, actual):
    return KPI(name="Vendas", category=KPICategory.FINANCE, target=target, actual=actual)


@pytest.mark.parametrize("target,actual", [(100, 50), (3, 7), (30, 0), (8, 1), (250.5, 1000.25), (4, -2)])
def test_completion_ratio_is_actual_over_target(target, actual):
    assert completion_ratio(_kpi(target, actual)) == actual / target


def test_completion_ratio_is_not_clamped():
    assert completion_ratio(_kpi(100, 250)) == 2.5


def test_zero_target_fallback():
    assert completion_ratio(_kpi(0, 0)) == 0.0
    assert completion_ratio(_kpi(0, -5)) == 0.0
    assert completion_ratio(_kpi(0, 12)) == 1.0


def test_nan_and_infinite_inputs_are_treated_as_zero():
    assert completion_ratio(_kpi(100, float("nan"))) == 0.0
    assert completion_ratio(_kpi(float("nan"), 10)) == 1.0  # target normalizes to 0
    assert completion_ratio(_kpi(100, float("inf"))) == 0.0
    assert not math.isnan(aggregate_performance(make_store(kpis=[(float("nan"), float("nan"))])))


def test_display_percent_caps_over_achievement():
    assert display_percent(_kpi(100, 180)) == 100
    assert display_percent(_kpi(100, 45)) == 45
    assert display_percent(_kpi(100, -20)) == 0


def test_empty_store_scores_zero():
    store = make_store(kpis=[])
    assert aggregate_performance(store) == 0
    assert resolve_tier(aggregate_performance(store)) is Tier.NONE


def test_aggregate_is_unweighted_mean():
    store = make_store(kpis=[(100, 100), (100, 50)])
    assert aggregate_performance(store) == 75


def test_weight_does_not_change_aggregate():
    store = make_store(kpis=[(100, 100), (100, 50)])
    heavy = store.model_copy(update={"kpis": (store.kpis[0].model_copy(update={"weight": 10}), store.kpis[1])})
    assert aggregate_performance(heavy) == aggregate_performance(store)


def test_aggregate_rounds_half_up():
    assert aggregate_performance(make_store(kpis=[(8, 1)])) == 13  # 12.5
    assert aggregate_performance(make_store(kpis=[(1000, 894)])) == 89


def test_over_achievement_counts_in_aggregate():
    store = make_store(kpis=[(100, 200), (100, 0)])
    assert aggregate_performance(store) == 100


def test_negative_aggregate_is_floored_at_zero():
    assert aggregate_performance(make_store(kpis=[(100, -300)])) == 0


@pytest.mark.parametrize(
    "performance,tier",
    [
        (100, Tier.ELITE),
        (99, Tier.GOLD),
        (90, Tier.GOLD),
        (89, Tier.SILVER),
        (80, Tier.SILVER),
        (79, Tier.BRONZE),
        (70, Tier.BRONZE),
        (69, Tier.NONE),
        (0, Tier.NONE),
        (250, Tier.ELITE),
    ],
)
def test_tier_boundaries(performance, tier):
    assert resolve_tier(performance) is tier


def test_resolve_tier_normalizes_bad_input():
    assert resolve_tier(float("nan")) is Tier.NONE
    assert resolve_tier(None) is Tier.NONE
    assert resolve_tier(-15) is Tier.NONE


def test_resolve_tier_is_monotonic():
    previous = resolve_tier(-50)
    for performance in range(-49, 200):
        current = resolve_tier(performance)
        assert current.rank >= previous.rank
        previous = current
    assert [t.rank for t in TIER_ORDER] == [0, 1, 2, 3, 4]


def test_end_to_end_elite_store():
    store = make_store(kpis=[(100000, 100000), (5, 5), (30, 30)])
    evaluation = evaluate_store(store)
    assert [score.ratio for score in evaluation.kpis] == [1, 1, 1]
    assert evaluation.performance == 100
    assert evaluation.tier is Tier.ELITE


def test_evaluation_is_repeatable():
    store = make_store(kpis=[(100, 87), (40, 31), (0, 3)])
    first = (aggregate_performance(store), resolve_tier(aggregate_performance(store)))
    second = (aggregate_performance(store), resolve_tier(aggregate_performance(store)))
    assert first == second
    assert evaluate_store(store) == evaluate_store(store)


@pytest.mark.parametrize(
    "kpis,performance,tier",
    [
        ([(1, 1e308), (1, 1e308)], 100000000, Tier.ELITE),
        ([(1, 1e307)], 100000000, Tier.ELITE),
        ([(1, 1e308), (1, -1e308)], 0, Tier.NONE),
        ([(1e-320, 1)], 100000000, Tier.ELITE),
    ],
)
def test_huge_ratios_saturate_instead_of_overflowing(kpis, performance, tier):
    store = make_store(kpis=kpis)
    assert aggregate_performance(store) == performance
    assert resolve_tier(aggregate_performance(store)) is tier
    assert all(0 <= display_percent(kpi) <= 100 for kpi in store.kpis)


def test_display_percent_of_huge_ratio():
    assert display_percent(_kpi(1, 1e307)) == 100
    assert display_percent(_kpi(1, -1e307)) == 0
    assert completion_ratio(_kpi(1e-320, -1)) == -1e6
