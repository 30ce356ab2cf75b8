"""Exception taxonomy for the engine and its token collaborators."""
from __future__ import annotations


class EngineError(Exception):
    """Base class for every failure raised by the engine."""


# ---------------------------------------------------------------------------
# Validation: rejected before any state is touched
# ---------------------------------------------------------------------------


class ValidationError(EngineError):
    """Caller input rejected before any state mutation."""


class AmountMustBeMoreThanZero(ValidationError):
    def __init__(self, amount: int) -> None:
        super().__init__(f"Amount must be more than zero, got {amount}")
        self.amount = amount


class TokenNotAllowed(ValidationError):
    def __init__(self, asset: str) -> None:
        super().__init__(f"Token '{asset}' is not an allowed collateral asset")
        self.asset = asset


class ConfigMismatch(ValidationError):
    """Collateral token and price feed lists differ in length."""

    def __init__(self, token_count: int, feed_count: int) -> None:
        super().__init__(
            f"Token addresses and price feed addresses must be the same length "
            f"({token_count} tokens, {feed_count} feeds)"
        )
        self.token_count = token_count
        self.feed_count = feed_count


# ---------------------------------------------------------------------------
# Ledger underflow
# ---------------------------------------------------------------------------


class LedgerUnderflow(EngineError):
    """A debit exceeded the recorded balance."""


class InsufficientCollateral(LedgerUnderflow):
    def __init__(self, account: str, asset: str, requested: int, available: int) -> None:
        super().__init__(
            f"Account '{account}' has {available} of '{asset}', cannot remove {requested}"
        )
        self.account = account
        self.asset = asset
        self.requested = requested
        self.available = available


class InsufficientDebt(LedgerUnderflow):
    def __init__(self, account: str, requested: int, available: int) -> None:
        super().__init__(
            f"Account '{account}' owes {available} DSC, cannot retire {requested}"
        )
        self.account = account
        self.requested = requested
        self.available = available


# ---------------------------------------------------------------------------
# Solvency invariant violations
# ---------------------------------------------------------------------------


class InvariantViolation(EngineError):
    """Solvency rule violated; the whole operation is rolled back."""

    def __init__(self, message: str, health_factor: int) -> None:
        super().__init__(message)
        self.health_factor = health_factor


class HealthFactorBroken(InvariantViolation):
    def __init__(self, health_factor: int) -> None:
        super().__init__(f"Health factor is broken: {health_factor}", health_factor)


class HealthFactorSafe(InvariantViolation):
    """Liquidation attempted on a solvent account."""

    def __init__(self, health_factor: int) -> None:
        super().__init__(f"Health factor is ok: {health_factor}", health_factor)


class HealthFactorNotImproved(InvariantViolation):
    def __init__(self, health_factor: int) -> None:
        super().__init__(
            f"Liquidation left health factor below the floor: {health_factor}",
            health_factor,
        )


# ---------------------------------------------------------------------------
# Collaborator failures
# ---------------------------------------------------------------------------


class CollaboratorFailure(EngineError):
    """A token transfer, mint or burn was refused."""


class TransferFailed(CollaboratorFailure):
    def __init__(self, token: str, sender: str, recipient: str, amount: int) -> None:
        super().__init__(
            f"Transfer of {amount} '{token}' from '{sender}' to '{recipient}' failed"
        )
        self.token = token
        self.sender = sender
        self.recipient = recipient
        self.amount = amount


class MintFailed(CollaboratorFailure):
    def __init__(self, recipient: str, amount: int) -> None:
        super().__init__(f"Minting {amount} DSC to '{recipient}' failed")
        self.recipient = recipient
        self.amount = amount


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class ReentrantCall(EngineError):
    """A guarded operation was entered while another one is in flight."""


class PriceUnavailable(EngineError):
    """A feed was asked for a price it never received."""


# ---------------------------------------------------------------------------
# Token collaborator
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for token ledger failures."""


class NotOwner(TokenError):
    def __init__(self, caller: str, owner: str) -> None:
        super().__init__(f"'{caller}' is not the token owner '{owner}'")
        self.caller = caller
        self.owner = owner


class TokenAmountMustBeMoreThanZero(TokenError):
    pass


class BurnAmountExceedsBalance(TokenError):
    def __init__(self, amount: int, balance: int) -> None:
        super().__init__(f"Burn amount {amount} exceeds balance {balance}")
        self.amount = amount
        self.balance = balance


class NotZeroAddress(TokenError):
    pass
