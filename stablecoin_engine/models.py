"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PriceQuote:
    """Latest round reported by a price feed (price is 8-decimal fixed point)."""

    price: int
    round_id: int = 0
    updated_at: int = 0
    decimals: int = 8


@dataclass(frozen=True)
class AccountInformation:
    """Debt and collateral value of one account, both 18-decimal fixed point."""

    total_dsc_minted: int
    collateral_value_in_usd: int


@dataclass(frozen=True)
class CollateralDeposited:
    account: str
    asset: str
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed:
    redeemed_from: str
    redeemed_to: str
    asset: str
    amount: int


EngineEvent = CollateralDeposited | CollateralRedeemed


@dataclass(frozen=True)
class AccountHealth:
    """Point-in-time solvency of one engine account."""

    account: str
    total_dsc_minted: int
    collateral_value_in_usd: int
    health_factor: int
