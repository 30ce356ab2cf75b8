"""Integration tests for the position monitor — engine state with mocked notifiers."""
from __future__ import annotations

import asyncio
import threading
from unittest.mock import AsyncMock, patch

import pytest

from stablecoin_engine.config import MonitorConfig
from stablecoin_engine.engine import StablecoinEngine
from stablecoin_engine.oracles import AggregatorFeed
from stablecoin_engine.services.monitor import PositionMonitor
from stablecoin_engine.tokens import Erc20Token, StableCoin
from tests.conftest import AMOUNT_COLLATERAL, ETH_USD_PRICE, USER

E18 = 10**18


class GatedFeed(AggregatorFeed):
    """Feed whose next read, once armed, blocks until released."""

    def __init__(self, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(*args, **kwargs)
        self.armed = False
        self.entered = threading.Event()
        self.release = threading.Event()

    def latest_round_data(self):  # type: ignore[no-untyped-def]
        if self.armed:
            self.armed = False
            self.entered.set()
            self.release.wait(5)
        return super().latest_round_data()

def _position(engine: StablecoinEngine, weth: Erc20Token, debt: int) -> None:
    weth.approve(USER, engine.address, AMOUNT_COLLATERAL)
    engine.deposit_collateral_and_mint_dsc(USER, weth.address, AMOUNT_COLLATERAL, debt)


@pytest.fixture()
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def monitor(
    engine: StablecoinEngine, sample_monitor_config: MonitorConfig, notifier: AsyncMock
) -> PositionMonitor:
    return PositionMonitor(engine, sample_monitor_config, [notifier])


class TestCheckAndAlert:
    @pytest.mark.asyncio
    async def test_healthy_position_sends_log_only(
        self, monitor: PositionMonitor, engine: StablecoinEngine, weth: Erc20Token, notifier: AsyncMock
    ) -> None:
        _position(engine, weth, 5_000 * E18)  # HF 2.0

        positions = await monitor.check_and_alert()

        assert [p.health_factor for p in positions] == [2 * E18]
        notifier.send_log.assert_called_once()
        log_msg = notifier.send_log.call_args[0][0]
        assert USER in log_msg
        assert "Healthy" in log_msg
        assert "$20,000.00" in log_msg
        notifier.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_warning_position_sends_alert(
        self, monitor: PositionMonitor, engine: StablecoinEngine, weth: Erc20Token, notifier: AsyncMock
    ) -> None:
        _position(engine, weth, 8_000 * E18)  # HF 1.25

        await monitor.check_and_alert()

        notifier.send_alert.assert_called_once()
        call_args = notifier.send_alert.call_args
        assert "WARNING" in call_args.kwargs["subject"]
        assert "1.25" in call_args[0][0]

    @pytest.mark.asyncio
    async def test_insolvent_position_sends_critical_alert(
        self,
        monitor: PositionMonitor,
        engine: StablecoinEngine,
        weth: Erc20Token,
        eth_usd: AggregatorFeed,
        notifier: AsyncMock,
    ) -> None:
        _position(engine, weth, 5_000 * E18)
        eth_usd.update_answer(900 * 10**8)  # HF 0.9

        await monitor.check_and_alert()

        notifier.send_alert.assert_called_once()
        call_args = notifier.send_alert.call_args
        assert "CRITICAL" in call_args.kwargs["subject"]
        assert "liquidated" in call_args[0][0]

    @pytest.mark.asyncio
    async def test_accounts_without_debt_are_skipped(
        self, monitor: PositionMonitor, engine: StablecoinEngine, weth: Erc20Token, notifier: AsyncMock
    ) -> None:
        weth.approve(USER, engine.address, AMOUNT_COLLATERAL)
        engine.deposit_collateral(USER, weth.address, AMOUNT_COLLATERAL)

        assert await monitor.check_and_alert() == []
        notifier.send_log.assert_not_called()

    @pytest.mark.asyncio
    async def test_notifier_failure_is_logged(
        self, monitor: PositionMonitor, engine: StablecoinEngine, weth: Erc20Token, notifier: AsyncMock
    ) -> None:
        _position(engine, weth, 5_000 * E18)
        notifier.send_log.side_effect = RuntimeError("telegram down")

        positions = await monitor.check_and_alert()

        assert len(positions) == 1


class TestDailyReport:
    @pytest.mark.asyncio
    async def test_report_lists_accounts_and_supply(
        self, monitor: PositionMonitor, engine: StablecoinEngine, weth: Erc20Token, notifier: AsyncMock
    ) -> None:
        _position(engine, weth, 5_000 * E18)

        report = await monitor.generate_daily_report()

        assert USER in report
        assert "DSC supply: $5,000.00" in report
        notifier.send_alert.assert_called_once_with(report, subject="")

    @pytest.mark.asyncio
    async def test_empty_report(self, monitor: PositionMonitor) -> None:
        report = await monitor.generate_daily_report()
        assert "No open positions." in report


class TestRunContinuous:
    @pytest.mark.asyncio
    async def test_refreshes_before_each_check(
        self, engine: StablecoinEngine, sample_monitor_config: MonitorConfig
    ) -> None:
        refresher = AsyncMock()
        monitor = PositionMonitor(engine, sample_monitor_config, [], refresher=refresher)

        with patch(
            "stablecoin_engine.services.monitor.asyncio.sleep",
            new=AsyncMock(side_effect=[None, asyncio.CancelledError()]),
        ) as mock_sleep:
            with pytest.raises(asyncio.CancelledError):
                await monitor.run_continuous(2)

        assert refresher.await_count == 2
        mock_sleep.assert_any_await(120)


@pytest.mark.asyncio
async def test_check_waits_off_loop_for_call_in_flight(
    weth: Erc20Token, sample_monitor_config: MonitorConfig
) -> None:
    feed = GatedFeed("ETH / USD", initial_answer=ETH_USD_PRICE)
    engine = StablecoinEngine([weth], [feed], StableCoin(owner="dsc-engine"))
    weth.mint(USER, AMOUNT_COLLATERAL)
    _position(engine, weth, 100 * E18)
    monitor = PositionMonitor(engine, sample_monitor_config, [])

    feed.armed = True
    writer = threading.Thread(target=engine.mint_dsc, args=(USER, E18))
    writer.start()
    try:
        assert feed.entered.wait(5)
        check = asyncio.create_task(monitor.check_and_alert())
        await asyncio.sleep(0.05)
        assert not check.done()
    finally:
        feed.release.set()
    positions = await check
    writer.join(5)

    assert [p.total_dsc_minted for p in positions] == [101 * E18]
