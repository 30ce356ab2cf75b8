"""Per-account collateral and debt bookkeeping. No solvency checks here."""
from __future__ import annotations

import copy
from collections.abc import Callable, Iterable

from .errors import InsufficientCollateral, InsufficientDebt

LedgerState = tuple[dict[str, dict[str, int]], dict[str, int], list[str]]


class Ledger:
    """Per-account, per-asset collateral balances and per-account minted debt.

    The ledger is the sole source of truth for solvency computation. It
    never checks solvency itself; callers do. Debits larger than the recorded
    balance raise instead of going negative.
    """

    def __init__(self) -> None:
        self._collateral: dict[str, dict[str, int]] = {}
        self._debt: dict[str, int] = {}
        self._accounts: list[str] = []

    def _touch(self, account: str) -> None:
        if account not in self._collateral and account not in self._debt:
            self._accounts.append(account)

    # ------------------------------------------------------------------
    # Collateral
    # ------------------------------------------------------------------

    def add_collateral(self, account: str, asset: str, quantity: int) -> None:
        self._touch(account)
        balances = self._collateral.setdefault(account, {})
        balances[asset] = balances.get(asset, 0) + quantity

    def sub_collateral(self, account: str, asset: str, quantity: int) -> None:
        available = self.collateral_of(account, asset)
        if quantity > available:
            raise InsufficientCollateral(account, asset, quantity, available)
        balances = self._collateral.get(account)
        if balances is not None:
            balances[asset] = available - quantity

    def collateral_of(self, account: str, asset: str) -> int:
        return self._collateral.get(account, {}).get(asset, 0)

    def total_collateral_of(self, asset: str) -> int:
        """Sum of every account's recorded balance of ``asset``."""
        return sum(balances.get(asset, 0) for balances in self._collateral.values())

    def collateral_value_of(
        self,
        account: str,
        assets: Iterable[str],
        value_of: Callable[[str, int], int],
    ) -> int:
        """Total USD value of ``account``'s collateral across ``assets``."""
        total = 0
        for asset in assets:
            total += value_of(asset, self.collateral_of(account, asset))
        return total

    # ------------------------------------------------------------------
    # Debt
    # ------------------------------------------------------------------

    def add_debt(self, account: str, quantity: int) -> None:
        self._touch(account)
        self._debt[account] = self._debt.get(account, 0) + quantity

    def sub_debt(self, account: str, quantity: int) -> None:
        available = self.debt_of(account)
        if quantity > available:
            raise InsufficientDebt(account, quantity, available)
        self._debt[account] = available - quantity

    def debt_of(self, account: str) -> int:
        return self._debt.get(account, 0)

    def total_debt(self) -> int:
        return sum(self._debt.values())

    # ------------------------------------------------------------------
    # Accounts & journaling
    # ------------------------------------------------------------------

    def accounts(self) -> tuple[str, ...]:
        """Every account seen so far, in first-seen order."""
        return tuple(self._accounts)

    def snapshot(self) -> LedgerState:
        return (
            copy.deepcopy(self._collateral),
            dict(self._debt),
            list(self._accounts),
        )

    def restore(self, state: LedgerState) -> None:
        collateral, debt, accounts = state
        self._collateral = copy.deepcopy(collateral)
        self._debt = dict(debt)
        self._accounts = list(accounts)
