"""Pure health factor arithmetic."""
from __future__ import annotations

from .constants import (
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    MIN_HEALTH_FACTOR,
    PRECISION,
)


def calculate_health_factor(total_dsc_minted: int, collateral_value_in_usd: int) -> int:
    """Calculate the solvency score of a position.

    health_factor = (collateral * LIQUIDATION_THRESHOLD / 100) * 1e18 / debt

    An account with no debt is unconditionally solvent and scores
    ``MAX_HEALTH_FACTOR``.
    """
    if total_dsc_minted == 0:
        return MAX_HEALTH_FACTOR
    collateral_adjusted_for_threshold = (
        collateral_value_in_usd * LIQUIDATION_THRESHOLD
    ) // LIQUIDATION_PRECISION
    return (collateral_adjusted_for_threshold * PRECISION) // total_dsc_minted


def is_solvent(health_factor: int) -> bool:
    return health_factor >= MIN_HEALTH_FACTOR


def format_health_factor(health_factor: int) -> str:
    """Render an 18-decimal health factor for humans, e.g. '1.50'."""
    if health_factor == MAX_HEALTH_FACTOR:
        return "∞"
    return f"{health_factor / PRECISION:.2f}"
