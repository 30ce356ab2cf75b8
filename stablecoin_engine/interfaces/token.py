"""Token protocols as seen from the engine."""
from typing import Protocol


class FungibleToken(Protocol):
    """Standard transfer/approve/balance semantics; refusals return False."""

    @property
    def address(self) -> str: ...

    def balance_of(self, account: str) -> int: ...

    def transfer(self, caller: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(
        self, caller: str, sender: str, recipient: str, amount: int
    ) -> bool: ...


class MintableToken(FungibleToken, Protocol):
    """The synthetic token: mint and burn are gated to its owner."""

    def total_supply(self) -> int: ...

    def mint(self, caller: str, recipient: str, amount: int) -> bool: ...

    def burn(self, caller: str, amount: int) -> None: ...
