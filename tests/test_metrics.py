import math

from propreports.services import metrics


def test_zero_denominators_return_zero():
    assert metrics.collection_rate(0, 0) == 0
    assert metrics.collection_rate(500, 0) == 0
    assert metrics.occupancy_rate(0, 0) == 0
    assert metrics.average_payment(1000, 0) == 0
    assert metrics.growth_percent(500, 0) == 0
    assert metrics.retention_rate(0, 0) == 0
    assert metrics.turnover_rate(3, 0) == 0
    assert metrics.on_time_rate(0, 0) == 0
    assert metrics.percentage_of(10, 0) == 0
    assert metrics.average_days(30, 0) == 0


def test_rates():
    assert metrics.collection_rate(750, 1000) == 75
    assert metrics.occupancy_rate(3, 4) == 75
    assert metrics.average_payment(1500, 3) == 500
    assert metrics.retention_rate(3, 1) == 75
    assert metrics.turnover_rate(1, 4) == 25
    assert metrics.on_time_rate(2, 5) == 40


def test_growth_percent_is_signed():
    assert metrics.growth_percent(1200, 1000) == 20
    assert metrics.growth_percent(0, 14000) == -100


def test_rates_above_one_hundred_pass_through():
    assert metrics.collection_rate(1500, 1000) == 150


def test_net_income_defaults_to_no_expenses():
    assert metrics.net_income(36000) == 36000
    assert metrics.net_income(36000, 6000) == 30000


def test_average_days_floors():
    assert metrics.average_days(10, 3) == 3
    assert metrics.average_days(485, 1) == 485


def test_results_are_always_finite():
    values = [
        metrics.collection_rate(0, 0),
        metrics.growth_percent(0, 0),
        metrics.occupancy_rate(0, 0),
        metrics.retention_rate(0, 0),
    ]
    assert all(math.isfinite(v) for v in values)
