from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from pnl_projector.types import FeatureAddon, PricingTier

# Flat add-on approximation used by the single-tier engines
ADDON_BASE_REVENUE = 50.0  # per enabled add-on per month
ADDON_PER_USER_REVENUE = 5.0  # per user per enabled add-on per month


@dataclass(frozen=True)
class RevenueBreakdown:
    base: float = 0.0
    addon: float = 0.0
    user: float = 0.0  # per-seat overage (hybrid)
    ai: float = 0.0  # usage overage (hybrid)

    @property
    def total(self) -> float:
        return self.base + self.addon + self.user + self.ai

    def scaled(self, factor: float) -> "RevenueBreakdown":
        return RevenueBreakdown(
            base=self.base * factor,
            addon=self.addon * factor,
            user=self.user * factor,
            ai=self.ai * factor,
        )


def flat_addon_revenue(avg_users: float, addon_count: int) -> float:
    if addon_count <= 0:
        return 0.0
    return addon_count * ADDON_BASE_REVENUE + avg_users * addon_count * ADDON_PER_USER_REVENUE


def seat_revenue(avg_users: float, price_per_user: float, addon_count: int) -> RevenueBreakdown:
    """Revenue for a single-tier period from the average user count."""
    return RevenueBreakdown(base=avg_users * price_per_user, addon=flat_addon_revenue(avg_users, addon_count))


def tenant_revenue(
    tier: PricingTier,
    users_per_tenant: float,
    usage_per_tenant: float,
    addons: Sequence[FeatureAddon],
) -> RevenueBreakdown:
    """Monthly revenue from one tenant on ``tier``.

    Base fee, seats above the included allowance, usage above the credit
    allowance and the list price of each selected add-on.
    """
    extra_users = max(0.0, users_per_tenant - tier.included_users)
    extra_usage = max(0.0, usage_per_tenant - tier.ai_credits)
    return RevenueBreakdown(
        base=tier.base_fee,
        addon=float(sum(a.price for a in addons)),
        user=extra_users * tier.per_user_rate,
        ai=extra_usage * tier.ai_overage_rate,
    )
