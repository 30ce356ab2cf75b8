"""Collateralized-debt engine: position actions, liquidation and queries."""
from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from .constants import (
    ADDITIONAL_FEED_PRECISION,
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from .errors import (
    AmountMustBeMoreThanZero,
    ConfigMismatch,
    HealthFactorBroken,
    HealthFactorNotImproved,
    HealthFactorSafe,
    MintFailed,
    TokenNotAllowed,
    TransferFailed,
    ValidationError,
)
from .health import calculate_health_factor, is_solvent
from .interfaces.journal import Reversible
from .interfaces.price_feed import PriceFeed
from .interfaces.token import FungibleToken, MintableToken
from .ledger import Ledger
from .models import AccountInformation, CollateralDeposited, CollateralRedeemed, EngineEvent
from .oracles.adapter import OracleAdapter
from .transaction import Transactor

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _guarded(method: F) -> F:
    """Run a state-changing method as one non-reentrant, all-or-nothing call."""

    @functools.wraps(method)
    def wrapper(self: StablecoinEngine, *args: Any, **kwargs: Any) -> Any:
        with self._transaction(method.__name__):
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class StablecoinEngine:
    """Custodies collateral and mints DSC debt against it.

    Every account must keep a health factor of at least ``MIN_HEALTH_FACTOR``
    (1.0, i.e. 200% overcollateralized) after any call that adds debt or
    removes collateral. Accounts that fall below it can be liquidated by
    anyone for a 10% collateral bonus.

    The engine must own ``dsc`` (see ``StableCoin.transfer_ownership``) so it
    can mint and burn. Account identities are passed explicitly as
    ``caller``; the engine's own identity is ``address``.
    """

    def __init__(
        self,
        token_addresses: Sequence[FungibleToken],
        price_feed_addresses: Sequence[PriceFeed],
        dsc: MintableToken,
        address: str = "dsc-engine",
        ledger: Ledger | None = None,
    ) -> None:
        if len(token_addresses) != len(price_feed_addresses):
            raise ConfigMismatch(len(token_addresses), len(price_feed_addresses))

        self.address = address
        self._dsc = dsc
        self._ledger = ledger if ledger is not None else Ledger()
        self._tokens: dict[str, FungibleToken] = {}
        feeds: dict[str, PriceFeed] = {}
        for token, feed in zip(token_addresses, price_feed_addresses):
            if token.address in self._tokens:
                raise ValidationError(f"Collateral token '{token.address}' listed twice")
            self._tokens[token.address] = token
            feeds[token.address] = feed
        self._collateral_tokens = tuple(self._tokens)
        self._oracle = OracleAdapter(feeds)

        self._tx = Transactor([self._ledger])

        self._events: list[EngineEvent] = []
        self._pending_events: list[EngineEvent] = []
        self._listeners: list[Callable[[EngineEvent], None]] = []

        logger.info(
            "Engine %s initialised with collateral %s",
            address, ", ".join(self._collateral_tokens),
        )

    # ------------------------------------------------------------------
    # Transactions & notifications
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, name: str) -> Iterator[None]:
        with self._tx.atomic(name):
            try:
                yield
            except BaseException as e:
                self._pending_events.clear()
                logger.warning("%s rejected: %s", name, e)
                raise
            committed, self._pending_events = self._pending_events, []
            self._events.extend(committed)
        logger.debug("%s committed", name)
        self._publish(committed)

    def _emit(self, event: EngineEvent) -> None:
        self._pending_events.append(event)

    def _publish(self, events: list[EngineEvent]) -> None:
        for event in events:
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception as e:
                    logger.error("Event listener failed on %s: %s", event, e)

    def subscribe(self, listener: Callable[[EngineEvent], None]) -> None:
        """Call ``listener`` with every notification of every committed call."""
        self._listeners.append(listener)

    @property
    def events(self) -> tuple[EngineEvent, ...]:
        """Notifications of all committed calls, in order."""
        return tuple(self._events)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _require_more_than_zero(amount: int) -> None:
        if amount <= 0:
            raise AmountMustBeMoreThanZero(amount)

    def _require_allowed(self, asset: str) -> None:
        if asset not in self._tokens:
            raise TokenNotAllowed(asset)

    # ------------------------------------------------------------------
    # Position actions
    # ------------------------------------------------------------------

    @_guarded
    def deposit_collateral(self, caller: str, asset: str, amount: int) -> None:
        self._deposit_collateral(caller, asset, amount)

    @_guarded
    def deposit_collateral_and_mint_dsc(
        self, caller: str, asset: str, amount: int, mint_amount: int
    ) -> None:
        """Deposit collateral and mint DSC against it in one call."""
        self._deposit_collateral(caller, asset, amount)
        self._mint_dsc(caller, mint_amount)

    @_guarded
    def mint_dsc(self, caller: str, amount: int) -> None:
        self._mint_dsc(caller, amount)

    @_guarded
    def redeem_collateral(self, caller: str, asset: str, amount: int) -> None:
        self._require_more_than_zero(amount)
        self._require_allowed(asset)
        self._redeem_collateral(asset, amount, caller, caller)
        self._revert_if_health_factor_is_broken(caller)

    @_guarded
    def burn_dsc(self, caller: str, amount: int) -> None:
        self._require_more_than_zero(amount)
        self._burn_dsc(amount, caller, caller)
        self._revert_if_health_factor_is_broken(caller)

    @_guarded
    def redeem_collateral_for_dsc(
        self, caller: str, asset: str, amount: int, burn_amount: int
    ) -> None:
        """Burn DSC, then release collateral; debt is retired first."""
        self._require_more_than_zero(amount)
        self._require_more_than_zero(burn_amount)
        self._require_allowed(asset)
        self._burn_dsc(burn_amount, caller, caller)
        self._redeem_collateral(asset, amount, caller, caller)
        self._revert_if_health_factor_is_broken(caller)

    # ------------------------------------------------------------------
    # Liquidation
    # ------------------------------------------------------------------

    @_guarded
    def liquidate(self, caller: str, asset: str, target: str, debt_to_cover: int) -> None:
        """Repay ``debt_to_cover`` of ``target``'s debt for its collateral plus a bonus.

        Only insolvent accounts can be liquidated, the target must end up
        solvent, and the liquidator's own position must stay solvent.
        """
        self._require_more_than_zero(debt_to_cover)
        self._require_allowed(asset)

        starting_health_factor = self._health_factor(target)
        if is_solvent(starting_health_factor):
            raise HealthFactorSafe(starting_health_factor)

        token_amount_from_debt_covered = self._oracle.quantity_of(asset, debt_to_cover)
        bonus_collateral = (
            token_amount_from_debt_covered * LIQUIDATION_BONUS
        ) // LIQUIDATION_PRECISION
        total_collateral_to_redeem = token_amount_from_debt_covered + bonus_collateral

        self._redeem_collateral(asset, total_collateral_to_redeem, target, caller)
        self._burn_dsc(debt_to_cover, target, caller)

        ending_health_factor = self._health_factor(target)
        if not is_solvent(ending_health_factor):
            raise HealthFactorNotImproved(ending_health_factor)
        self._revert_if_health_factor_is_broken(caller)

        logger.info(
            "Liquidated %s: %s covered %d DSC for %d %s (bonus %d), HF %d -> %d",
            target, caller, debt_to_cover, total_collateral_to_redeem, asset,
            bonus_collateral, starting_health_factor, ending_health_factor,
        )

    # ------------------------------------------------------------------
    # Internal steps (run inside a transaction)
    # ------------------------------------------------------------------

    def _deposit_collateral(self, caller: str, asset: str, amount: int) -> None:
        self._require_more_than_zero(amount)
        self._require_allowed(asset)
        self._ledger.add_collateral(caller, asset, amount)
        self._emit(CollateralDeposited(caller, asset, amount))
        token = self._tokens[asset]
        if not token.transfer_from(self.address, caller, self.address, amount):
            raise TransferFailed(asset, caller, self.address, amount)
        self._on_rollback(token, "reverse_transfer", caller, self.address, amount, self.address)

    def _mint_dsc(self, caller: str, amount: int) -> None:
        self._require_more_than_zero(amount)
        self._ledger.add_debt(caller, amount)
        self._revert_if_health_factor_is_broken(caller)
        if not self._dsc.mint(self.address, caller, amount):
            raise MintFailed(caller, amount)
        self._on_rollback(self._dsc, "reverse_mint", caller, amount)

    def _redeem_collateral(self, asset: str, amount: int, redeemed_from: str, redeemed_to: str) -> None:
        self._ledger.sub_collateral(redeemed_from, asset, amount)
        self._emit(CollateralRedeemed(redeemed_from, redeemed_to, asset, amount))
        token = self._tokens[asset]
        if not token.transfer(self.address, redeemed_to, amount):
            raise TransferFailed(asset, self.address, redeemed_to, amount)
        self._on_rollback(token, "reverse_transfer", self.address, redeemed_to, amount)

    def _burn_dsc(self, amount: int, on_behalf_of: str, dsc_from: str) -> None:
        # Debt is debited before the pull; a refused pull rolls both back.
        self._ledger.sub_debt(on_behalf_of, amount)
        if not self._dsc.transfer_from(self.address, dsc_from, self.address, amount):
            raise TransferFailed(self._dsc.address, dsc_from, self.address, amount)
        self._on_rollback(
            self._dsc, "reverse_transfer", dsc_from, self.address, amount, self.address
        )
        self._dsc.burn(self.address, amount)
        self._on_rollback(self._dsc, "reverse_burn", self.address, amount)

    def _on_rollback(self, token: FungibleToken, reversal: str, *args: Any) -> None:
        """Queue the inverse of a token operation that just succeeded.

        Tokens without reversal support keep their changes on rollback; only
        the ledger is restored for them.
        """
        if isinstance(token, Reversible):
            self._tx.on_rollback(functools.partial(getattr(token, reversal), *args))

    def _account_information(self, account: str) -> AccountInformation:
        return AccountInformation(
            total_dsc_minted=self._ledger.debt_of(account),
            collateral_value_in_usd=self._ledger.collateral_value_of(
                account, self._collateral_tokens, self._oracle.value_of
            ),
        )

    def _health_factor(self, account: str) -> int:
        info = self._account_information(account)
        return calculate_health_factor(info.total_dsc_minted, info.collateral_value_in_usd)

    def _revert_if_health_factor_is_broken(self, account: str) -> None:
        health_factor = self._health_factor(account)
        if not is_solvent(health_factor):
            raise HealthFactorBroken(health_factor)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_account_information(self, account: str) -> AccountInformation:
        with self._tx.reading():
            return self._account_information(account)

    def get_health_factor(self, account: str) -> int:
        with self._tx.reading():
            return self._health_factor(account)

    def get_account_collateral_value(self, account: str) -> int:
        with self._tx.reading():
            return self._account_information(account).collateral_value_in_usd

    def get_collateral_balance_of_user(self, account: str, asset: str) -> int:
        with self._tx.reading():
            return self._ledger.collateral_of(account, asset)

    def get_dsc_minted(self, account: str) -> int:
        with self._tx.reading():
            return self._ledger.debt_of(account)

    def get_usd_value(self, asset: str, amount: int) -> int:
        return self._oracle.value_of(asset, amount)

    def get_token_amount_from_usd(self, asset: str, usd_amount_in_wei: int) -> int:
        return self._oracle.quantity_of(asset, usd_amount_in_wei)

    def accounts(self) -> tuple[str, ...]:
        with self._tx.reading():
            return self._ledger.accounts()

    @staticmethod
    def calculate_health_factor(total_dsc_minted: int, collateral_value_in_usd: int) -> int:
        return calculate_health_factor(total_dsc_minted, collateral_value_in_usd)

    def get_collateral_tokens(self) -> tuple[str, ...]:
        return self._collateral_tokens

    def get_collateral_token_price_feed(self, asset: str) -> PriceFeed:
        return self._oracle.feed_of(asset)

    def get_dsc(self) -> MintableToken:
        return self._dsc

    @staticmethod
    def get_precision() -> int:
        return PRECISION

    @staticmethod
    def get_additional_feed_precision() -> int:
        return ADDITIONAL_FEED_PRECISION

    @staticmethod
    def get_liquidation_threshold() -> int:
        return LIQUIDATION_THRESHOLD

    @staticmethod
    def get_liquidation_bonus() -> int:
        return LIQUIDATION_BONUS

    @staticmethod
    def get_liquidation_precision() -> int:
        return LIQUIDATION_PRECISION

    @staticmethod
    def get_min_health_factor() -> int:
        return MIN_HEALTH_FACTOR
