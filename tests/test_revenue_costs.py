import pytest

from pnl_projector.costs import CostBreakdown, infrastructure_cost, per_user_variable_cost, revenue_share_cost
from pnl_projector.presets import get_feature_addon, get_pricing_tier
from pnl_projector.revenue import flat_addon_revenue, seat_revenue, tenant_revenue


def test_seat_revenue_without_addons():
    rev = seat_revenue(28.5, 299.0, 0)
    assert rev.base == pytest.approx(8521.5)
    assert rev.addon == 0.0
    assert rev.total == pytest.approx(8521.5)


def test_flat_addon_approximation():
    # 2 add-ons: 2 * 50 + 10 users * 2 * 5
    assert flat_addon_revenue(10, 2) == pytest.approx(200.0)
    assert flat_addon_revenue(10, 0) == 0.0


def test_tenant_revenue_overage_and_addons():
    tier = get_pricing_tier("growth")
    addons = [get_feature_addon("advanced_analytics"), get_feature_addon("api_access")]
    rev = tenant_revenue(tier, users_per_tenant=20, usage_per_tenant=6000, addons=addons)
    assert rev.base == 299.0
    assert rev.user == pytest.approx(5 * 12.0)
    assert rev.ai == pytest.approx(1000 * 0.015)
    assert rev.addon == pytest.approx(148.0)
    assert rev.scaled(2).total == pytest.approx(2 * rev.total)


def test_tenant_revenue_within_allowance():
    tier = get_pricing_tier("starter")
    rev = tenant_revenue(tier, users_per_tenant=3, usage_per_tenant=10, addons=[])
    assert rev.total == tier.base_fee


def test_cost_total_counts_marketing_once():
    cost = CostBreakdown(fixed=36700.0, variable=142.5, marketing=4000.0, capital=10000.0)
    assert cost.total == pytest.approx(50842.5)


@pytest.mark.parametrize("users,expected", [(0, 100.0), (999, 100.0), (1000, 150.0), (2500, 200.0)])
def test_infrastructure_cost_steps(users, expected):
    assert infrastructure_cost(users) == expected


def test_revenue_share_cost_scales_with_seats():
    assert revenue_share_cost(1000.0, 0) == pytest.approx(150.0)
    assert revenue_share_cost(1000.0, 10000) == pytest.approx(200.0)


def test_per_user_variable_cost():
    assert per_user_variable_cost(28.5, 5.0) == pytest.approx(142.5)
