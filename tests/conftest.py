"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from stablecoin_engine.config import (
    AppConfig,
    CollateralConfig,
    MonitorConfig,
    NotificationsConfig,
    PriceOracleConfig,
    PythConfig,
    TelegramConfig,
)
from stablecoin_engine.engine import StablecoinEngine
from stablecoin_engine.oracles import AggregatorFeed
from stablecoin_engine.tokens import Erc20Token, StableCoin

ETH_USD_PRICE = 2000 * 10**8
BTC_USD_PRICE = 1000 * 10**8

DEPLOYER = "deployer"
USER = "user"
LIQUIDATOR = "liquidator"

AMOUNT_COLLATERAL = 10 * 10**18
STARTING_ERC20_BALANCE = 10 * 10**18
AMOUNT_TO_MINT = 100 * 10**18
COLLATERAL_TO_COVER = 20 * 10**18


# ---------------------------------------------------------------------------
# Deployment fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def weth() -> Erc20Token:
    return Erc20Token("Wrapped Ether", "WETH")


@pytest.fixture()
def wbtc() -> Erc20Token:
    return Erc20Token("Wrapped Bitcoin", "WBTC")


@pytest.fixture()
def eth_usd() -> AggregatorFeed:
    return AggregatorFeed("ETH / USD", initial_answer=ETH_USD_PRICE)


@pytest.fixture()
def btc_usd() -> AggregatorFeed:
    return AggregatorFeed("BTC / USD", initial_answer=BTC_USD_PRICE)


@pytest.fixture()
def dsc() -> StableCoin:
    return StableCoin(owner=DEPLOYER)


@pytest.fixture()
def engine(
    weth: Erc20Token,
    wbtc: Erc20Token,
    eth_usd: AggregatorFeed,
    btc_usd: AggregatorFeed,
    dsc: StableCoin,
) -> StablecoinEngine:
    eng = StablecoinEngine([weth, wbtc], [eth_usd, btc_usd], dsc)
    dsc.transfer_ownership(DEPLOYER, eng.address)
    weth.mint(USER, STARTING_ERC20_BALANCE)
    wbtc.mint(USER, STARTING_ERC20_BALANCE)
    return eng


@pytest.fixture()
def deposited(engine: StablecoinEngine, weth: Erc20Token) -> StablecoinEngine:
    weth.approve(USER, engine.address, AMOUNT_COLLATERAL)
    engine.deposit_collateral(USER, weth.address, AMOUNT_COLLATERAL)
    return engine


@pytest.fixture()
def deposited_and_minted(engine: StablecoinEngine, weth: Erc20Token) -> StablecoinEngine:
    weth.approve(USER, engine.address, AMOUNT_COLLATERAL)
    engine.deposit_collateral_and_mint_dsc(USER, weth.address, AMOUNT_COLLATERAL, AMOUNT_TO_MINT)
    return engine


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_pyth_config() -> PythConfig:
    return PythConfig(hermes_url="https://hermes.pyth.network/v2/updates/price/latest")


@pytest.fixture()
def sample_monitor_config() -> MonitorConfig:
    return MonitorConfig(check_interval_minutes=5, health_factor_warning=1.5)


@pytest.fixture()
def sample_app_config(
    sample_pyth_config: PythConfig, sample_monitor_config: MonitorConfig
) -> AppConfig:
    return AppConfig(
        collateral=(
            CollateralConfig(symbol="WETH", feed_id="aaa111", decimals=18),
            CollateralConfig(symbol="WBTC", feed_id="bbb222", decimals=8),
        ),
        monitor=sample_monitor_config,
        price_oracle=PriceOracleConfig(provider="pyth", pyth=sample_pyth_config),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


SAMPLE_YAML = textwrap.dedent("""\
    collateral:
      WETH:
        feed_id: "aaa111"
        decimals: 18
      WBTC:
        feed_id: "bbb222"
        decimals: 8
    monitor:
      check_interval_minutes: 5
      health_factor_warning: 1.25
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
        engine_label: "eth-vault"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample Hermes response
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_hermes_payload() -> dict:
    return {
        "parsed": [
            {
                "id": "aaa111",
                "price": {"price": "200012345678", "expo": "-8", "publish_time": 1700000000},
            },
            {
                "id": "bbb222",
                "price": {"price": "6500000000000", "expo": "-8", "publish_time": 1700000001},
            },
        ]
    }
