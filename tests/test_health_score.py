"""Tests for the deterministic health scorer."""

import pytest

from app.handlers.health import calculate_health_score, classify_health, health_snapshot, overall_status

BASELINE = dict(
    total_tenants=10,
    active_tenants=8,
    failed_tenants=0,
    critical_logs_24h=0,
    error_logs_24h=0,
    unresolved_critical=0,
    unresolved_errors=0,
)


def score(**overrides) -> int:
    return calculate_health_score(**{**BASELINE, **overrides})


def test_perfect_health() -> None:
    assert score() == 100
    assert classify_health(100) == "excellent"


def test_failed_tenant_ratio_weighs_thirty() -> None:
    assert score(failed_tenants=5) == 85
    assert score(failed_tenants=10) == 70


def test_no_tenants_skips_ratio() -> None:
    assert score(total_tenants=0, active_tenants=0, failed_tenants=0) == 100


def test_recent_log_penalties_are_capped() -> None:
    assert score(critical_logs_24h=2) == 90
    assert score(critical_logs_24h=50) == 75
    assert score(error_logs_24h=7) == 93
    assert score(error_logs_24h=500) == 80


def test_unresolved_penalties() -> None:
    assert score(unresolved_critical=1) == 90
    assert score(unresolved_errors=2) == 94


def test_score_is_clamped_at_zero() -> None:
    assert score(unresolved_critical=20, unresolved_errors=20) == 0


def test_halves_round_up() -> None:
    # 100 - (1/4)*30 = 92.5
    assert score(total_tenants=4, active_tenants=3, failed_tenants=1) == 93


def test_active_tenants_carry_no_weight() -> None:
    assert score(active_tenants=0) == score(active_tenants=10)


@pytest.mark.parametrize("field", ["unresolved_critical", "failed_tenants"])
def test_monotonically_non_increasing(field: str) -> None:
    scores = [score(**{field: n}) for n in range(0, 11)]
    assert scores == sorted(scores, reverse=True)


def test_pure_function() -> None:
    inputs = {**BASELINE, "critical_logs_24h": 3, "unresolved_errors": 4}
    assert health_snapshot(**inputs) == health_snapshot(**inputs)


@pytest.mark.parametrize(
    "value,status",
    [(95, "excellent"), (94, "good"), (85, "good"), (84, "fair"), (70, "fair"), (69, "poor"), (0, "poor")],
)
def test_classification_thresholds(value: int, status: str) -> None:
    assert classify_health(value) == status


def test_overall_status() -> None:
    assert overall_status([{"status": "healthy"}, {"status": "healthy"}]) == "healthy"
    assert overall_status([{"status": "healthy"}, {"status": "unknown"}]) == "degraded"
    assert overall_status([{"status": "degraded"}, {"status": "critical"}]) == "critical"
