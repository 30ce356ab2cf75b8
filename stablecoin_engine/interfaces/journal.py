"""State that can be captured and rolled back."""
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class Journaled(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


@runtime_checkable
class Reversible(Protocol):
    """A token that can undo one of its own earlier operations in place."""

    def reverse_transfer(
        self, sender: str, recipient: str, amount: int, spender: Optional[str] = None
    ) -> None: ...

    def reverse_mint(self, recipient: str, amount: int) -> None: ...

    def reverse_burn(self, account: str, amount: int) -> None: ...
