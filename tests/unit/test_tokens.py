"""Unit tests for the in-memory token ledgers."""
from __future__ import annotations

import pytest

from stablecoin_engine.errors import (
    BurnAmountExceedsBalance,
    NotOwner,
    NotZeroAddress,
    TokenAmountMustBeMoreThanZero,
)
from stablecoin_engine.tokens import Erc20Token, StableCoin


@pytest.fixture()
def token() -> Erc20Token:
    t = Erc20Token("Wrapped Ether", "WETH")
    t.mint("alice", 100)
    return t


class TestErc20Token:
    def test_default_address(self, token: Erc20Token) -> None:
        assert token.address == "weth"
        assert token.total_supply() == 100

    def test_transfer(self, token: Erc20Token) -> None:
        assert token.transfer("alice", "bob", 30) is True
        assert token.balance_of("alice") == 70
        assert token.balance_of("bob") == 30

    def test_transfer_over_balance_refused(self, token: Erc20Token) -> None:
        assert token.transfer("alice", "bob", 101) is False
        assert token.balance_of("alice") == 100
        assert token.balance_of("bob") == 0

    def test_transfer_from_needs_allowance(self, token: Erc20Token) -> None:
        assert token.transfer_from("spender", "alice", "bob", 10) is False
        token.approve("alice", "spender", 25)
        assert token.transfer_from("spender", "alice", "bob", 10) is True
        assert token.allowance("alice", "spender") == 15
        assert token.balance_of("bob") == 10

    def test_transfer_from_keeps_allowance_on_refusal(self, token: Erc20Token) -> None:
        token.approve("alice", "spender", 500)
        assert token.transfer_from("spender", "alice", "bob", 200) is False
        assert token.allowance("alice", "spender") == 500

    def test_reverse_transfer_from_returns_allowance(self, token: Erc20Token) -> None:
        token.approve("alice", "spender", 30)
        assert token.transfer_from("spender", "alice", "vault", 30) is True
        token.reverse_transfer("alice", "vault", 30, spender="spender")
        assert token.balance_of("alice") == 100
        assert token.balance_of("vault") == 0
        assert token.allowance("alice", "spender") == 30

    def test_reverse_transfer_keeps_later_changes(self, token: Erc20Token) -> None:
        assert token.transfer("alice", "vault", 40) is True
        token.mint("carol", 7)
        assert token.transfer("alice", "vault", 10) is True
        token.reverse_transfer("alice", "vault", 40)
        assert token.balance_of("alice") == 90
        assert token.balance_of("vault") == 10
        assert token.balance_of("carol") == 7
        assert token.total_supply() == 107


class TestStableCoin:
    def test_owner_mints(self) -> None:
        dsc = StableCoin(owner="engine")
        assert dsc.mint("engine", "alice", 50) is True
        assert dsc.balance_of("alice") == 50
        assert dsc.total_supply() == 50

    def test_non_owner_cannot_mint(self) -> None:
        dsc = StableCoin(owner="engine")
        with pytest.raises(NotOwner):
            dsc.mint("alice", "alice", 50)

    def test_mint_zero_rejected(self) -> None:
        dsc = StableCoin(owner="engine")
        with pytest.raises(TokenAmountMustBeMoreThanZero):
            dsc.mint("engine", "alice", 0)

    def test_mint_to_empty_address_rejected(self) -> None:
        dsc = StableCoin(owner="engine")
        with pytest.raises(NotZeroAddress):
            dsc.mint("engine", "", 1)

    def test_burn_from_owner_balance(self) -> None:
        dsc = StableCoin(owner="engine")
        dsc.mint("engine", "engine", 50)
        dsc.burn("engine", 20)
        assert dsc.balance_of("engine") == 30
        assert dsc.total_supply() == 30

    def test_burn_exceeding_balance(self) -> None:
        dsc = StableCoin(owner="engine")
        dsc.mint("engine", "engine", 5)
        with pytest.raises(BurnAmountExceedsBalance):
            dsc.burn("engine", 6)

    def test_non_owner_cannot_burn(self) -> None:
        dsc = StableCoin(owner="engine")
        with pytest.raises(NotOwner):
            dsc.burn("alice", 1)

    def test_transfer_ownership(self) -> None:
        dsc = StableCoin(owner="deployer")
        dsc.transfer_ownership("deployer", "engine")
        assert dsc.owner == "engine"
        with pytest.raises(NotOwner):
            dsc.transfer_ownership("deployer", "someone")

    def test_reverse_mint_and_burn(self) -> None:
        dsc = StableCoin(owner="engine")
        dsc.mint("engine", "alice", 50)
        dsc.mint("engine", "engine", 20)
        dsc.burn("engine", 20)
        dsc.reverse_burn("engine", 20)
        dsc.reverse_mint("alice", 50)
        assert dsc.balance_of("engine") == 20
        assert dsc.balance_of("alice") == 0
        assert dsc.total_supply() == 20
