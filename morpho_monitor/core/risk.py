"""Position risk math — LTV, liquidation price, buffer. Pure functions."""
from __future__ import annotations

from enum import Enum

from ..models import MarketPosition, RiskSnapshot


class ThresholdPolicy(str, Enum):
    """How the configured LTV alert threshold is interpreted.

    RELATIVE: threshold is a fraction of the market LLTV.
    ABSOLUTE: threshold is compared with the LTV directly.
    """

    RELATIVE = "relative"
    ABSOLUTE = "absolute"


def calc_ltv(position: MarketPosition) -> float:
    """Loan-to-value as a fraction; 0 when there is no collateral."""
    collateral_value = position.collateral_amount * position.collateral_price
    if position.collateral_amount == 0 or collateral_value == 0:
        return 0.0
    return (position.borrowed_amount * position.borrow_price) / collateral_value


def calc_liquidation_price(position: MarketPosition) -> float:
    """Collateral price at which the position reaches LLTV; 0 without debt."""
    if position.borrowed_amount == 0:
        return 0.0
    denominator = position.collateral_amount * position.lltv
    if denominator == 0:
        return 0.0
    return (position.borrowed_amount * position.borrow_price) / denominator


def calc_buffer_percentage(ltv: float, lltv: float) -> float:
    """Headroom between LTV and LLTV, in percent of LLTV.

    Returns 100 when the market has no liquidation threshold.
    """
    if lltv == 0:
        return 100.0
    return 100 * (1 - ltv / lltv)


def assess_position(position: MarketPosition) -> RiskSnapshot:
    ltv = calc_ltv(position)
    return RiskSnapshot(
        position=position,
        ltv=ltv,
        liquidation_price=calc_liquidation_price(position),
        buffer_percentage=calc_buffer_percentage(ltv, position.lltv),
        collateral_value_usd=position.collateral_amount * position.collateral_price,
        borrowed_value_usd=position.borrowed_amount * position.borrow_price,
    )


def ltv_alert_level(
    lltv: float, threshold: float, policy: ThresholdPolicy
) -> float:
    """LTV at or above which an alert is raised."""
    if policy is ThresholdPolicy.RELATIVE:
        return lltv * threshold
    return threshold


def is_ltv_alert(
    ltv: float, lltv: float, threshold: float, policy: ThresholdPolicy
) -> bool:
    return ltv >= ltv_alert_level(lltv, threshold, policy)


def oracle_price_deviation(market_price: float, feed_price: float) -> float:
    """Absolute gap between the market oracle price and the feed-derived price."""
    return abs(market_price - feed_price)
