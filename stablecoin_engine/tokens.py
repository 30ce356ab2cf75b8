"""In-memory fungible-token ledgers: collateral tokens and the DSC stablecoin."""
from __future__ import annotations

import logging
import threading

from .errors import (
    BurnAmountExceedsBalance,
    NotOwner,
    NotZeroAddress,
    TokenAmountMustBeMoreThanZero,
)

logger = logging.getLogger(__name__)


class Erc20Token:
    """Balances, allowances and transfers for one fungible token.

    Transfers that the sender cannot cover (balance or allowance) are
    refused by returning ``False``; no state changes in that case.

    Every change is applied under the token's own lock, so one token may be
    shared by several engines and plain holders on different threads. The
    ``reverse_*`` methods apply the exact inverse of one earlier successful
    operation and leave every other balance untouched.
    """

    def __init__(self, name: str, symbol: str, decimals: int = 18, address: str = "") -> None:
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._address = address or symbol.lower()
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0
        self._lock = threading.RLock()

    @property
    def address(self) -> str:
        return self._address

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol!r}, address={self._address!r})"

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def total_supply(self) -> int:
        return self._total_supply

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        with self._lock:
            self._allowances[(caller, spender)] = amount
        return True

    def transfer(self, caller: str, recipient: str, amount: int) -> bool:
        with self._lock:
            return self._move(caller, recipient, amount)

    def transfer_from(self, caller: str, sender: str, recipient: str, amount: int) -> bool:
        with self._lock:
            allowed = self.allowance(sender, caller)
            if amount > allowed:
                logger.debug(
                    "%s: allowance %d of %s for %s is below %d",
                    self.symbol, allowed, sender, caller, amount,
                )
                return False
            if not self._move(sender, recipient, amount):
                return False
            self._allowances[(sender, caller)] = allowed - amount
            return True

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        balance = self.balance_of(sender)
        if amount < 0 or amount > balance:
            logger.debug(
                "%s: balance %d of %s cannot cover %d", self.symbol, balance, sender, amount
            )
            return False
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True

    # ------------------------------------------------------------------
    # Supply
    # ------------------------------------------------------------------

    def mint(self, recipient: str, amount: int) -> None:
        """Faucet mint, for simulated collateral deployments."""
        with self._lock:
            self._balances[recipient] = self.balance_of(recipient) + amount
            self._total_supply += amount

    def _burn_from(self, account: str, amount: int) -> None:
        with self._lock:
            self._balances[account] = self.balance_of(account) - amount
            self._total_supply -= amount

    # ------------------------------------------------------------------
    # Reversal
    # ------------------------------------------------------------------

    def reverse_transfer(
        self, sender: str, recipient: str, amount: int, spender: str | None = None
    ) -> None:
        """Undo a transfer of ``amount`` from ``sender`` to ``recipient``.

        With ``spender`` set, the allowance a ``transfer_from`` consumed is
        given back too.
        """
        with self._lock:
            self._balances[recipient] = self.balance_of(recipient) - amount
            self._balances[sender] = self.balance_of(sender) + amount
            if spender is not None:
                key = (sender, spender)
                self._allowances[key] = self.allowance(sender, spender) + amount
        logger.debug("%s: reversed %d from %s to %s", self.symbol, amount, sender, recipient)

    def reverse_mint(self, recipient: str, amount: int) -> None:
        self._burn_from(recipient, amount)

    def reverse_burn(self, account: str, amount: int) -> None:
        Erc20Token.mint(self, account, amount)


class StableCoin(Erc20Token):
    """The USD-pegged synthetic token; only its owner may mint or burn."""

    def __init__(self, owner: str, address: str = "dsc") -> None:
        super().__init__("DecentralizedStableCoin", "DSC", 18, address)
        self.owner = owner

    def _only_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise NotOwner(caller, self.owner)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._only_owner(caller)
        if not new_owner:
            raise NotZeroAddress("New owner must not be empty")
        logger.info("DSC ownership transferred from %s to %s", self.owner, new_owner)
        self.owner = new_owner

    def mint(self, caller: str, recipient: str, amount: int) -> bool:  # type: ignore[override]
        self._only_owner(caller)
        if not recipient:
            raise NotZeroAddress("Cannot mint to an empty address")
        if amount <= 0:
            raise TokenAmountMustBeMoreThanZero("Mint amount must be more than zero")
        super().mint(recipient, amount)
        return True

    def burn(self, caller: str, amount: int) -> None:
        """Destroy ``amount`` tokens held by the owner."""
        self._only_owner(caller)
        if amount <= 0:
            raise TokenAmountMustBeMoreThanZero("Burn amount must be more than zero")
        with self._lock:
            balance = self.balance_of(caller)
            if amount > balance:
                raise BurnAmountExceedsBalance(amount, balance)
            self._burn_from(caller, amount)
