"""Health monitoring over engine accounts — logs, alerts and reports."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from ..config import MonitorConfig
from ..constants import MIN_HEALTH_FACTOR, PRECISION
from ..engine import StablecoinEngine
from ..health import format_health_factor
from ..interfaces.notifier import Notifier
from ..models import AccountHealth

logger = logging.getLogger(__name__)


class PositionMonitor:
    """Watches every account of one engine and alerts on insolvency risk.

    Accounts below ``MIN_HEALTH_FACTOR`` can be liquidated right now and
    raise a CRITICAL alert; accounts below the configured warning health
    factor raise a WARNING alert.
    """

    def __init__(
        self,
        engine: StablecoinEngine,
        config: MonitorConfig,
        notifiers: list[Notifier] | None = None,
        refresher: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._engine = engine
        self._config = config
        self._notifiers: list[Notifier] = list(notifiers or [])
        self._refresher = refresher
        self._warning_health_factor = int(
            Decimal(str(config.health_factor_warning)) * PRECISION
        )

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_account(account: str) -> str:
        if len(account) > 16:
            return f"{account[:10]}...{account[-6:]}"
        return account

    @staticmethod
    def _usd(amount: int) -> str:
        return f"${amount / PRECISION:,.2f}"

    def _get_status(self, health_factor: int) -> str:
        if health_factor < MIN_HEALTH_FACTOR:
            return "🚨 CRITICAL"
        if health_factor < self._warning_health_factor:
            return "⚠️ WARNING"
        return "✅ Healthy"

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _build_log_message(self, health: AccountHealth) -> str:
        return (
            f"📊 {self._format_account(health.account)}\n"
            f"\n"
            f"{self._get_status(health.health_factor)}\n"
            f"\n"
            f"Collateral: {self._usd(health.collateral_value_in_usd)}\n"
            f"Debt: {self._usd(health.total_dsc_minted)} DSC\n"
            f"HF: {format_health_factor(health.health_factor)}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    def _build_alert(self, health: AccountHealth, headline: str, advice: str) -> str:
        return (
            f"{headline} — HF {format_health_factor(health.health_factor)}\n"
            f"\n"
            f"Account: {self._format_account(health.account)}\n"
            f"Collateral: {self._usd(health.collateral_value_in_usd)}\n"
            f"Debt: {self._usd(health.total_dsc_minted)} DSC\n"
            f"\n"
            f"{advice}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = True) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    def account_health(self) -> list[AccountHealth]:
        """Health of every account that currently owes DSC."""
        positions: list[AccountHealth] = []
        for account in self._engine.accounts():
            info = self._engine.get_account_information(account)
            if info.total_dsc_minted == 0:
                continue
            positions.append(
                AccountHealth(
                    account=account,
                    total_dsc_minted=info.total_dsc_minted,
                    collateral_value_in_usd=info.collateral_value_in_usd,
                    health_factor=self._engine.calculate_health_factor(
                        info.total_dsc_minted, info.collateral_value_in_usd
                    ),
                )
            )
        return positions

    async def _snapshot(self) -> list[AccountHealth]:
        # Engine queries block while a call is in flight on another thread.
        return await asyncio.to_thread(self.account_health)

    async def check_and_alert(self) -> list[AccountHealth]:
        """Check every indebted account; alert on critical or warning health."""
        positions = await self._snapshot()

        for health in positions:
            logger.info(
                "Account %s · Collateral: %s  Debt: %s  HF: %s",
                health.account,
                self._usd(health.collateral_value_in_usd),
                self._usd(health.total_dsc_minted),
                format_health_factor(health.health_factor),
            )
            await self._send_log(self._build_log_message(health))

            if health.health_factor < MIN_HEALTH_FACTOR:
                await self._send_alert(
                    self._build_alert(
                        health,
                        "🚨 CRITICAL",
                        "Account is below the minimum health factor and can be liquidated.",
                    ),
                    subject="🚨 CRITICAL: Liquidatable account",
                )
            elif health.health_factor < self._warning_health_factor:
                await self._send_alert(
                    self._build_alert(
                        health,
                        "⚠️ WARNING",
                        "Consider adding collateral or burning DSC.",
                    ),
                    subject="⚠️ WARNING: Low health factor",
                )

        return positions

    async def generate_daily_report(self) -> str:
        """Send a summary of every indebted account and return it."""
        positions = await self._snapshot()
        lines = [
            f"{self._format_account(h.account)} · {self._get_status(h.health_factor)}\n"
            f"  Collateral: {self._usd(h.collateral_value_in_usd)}\n"
            f"  Debt: {self._usd(h.total_dsc_minted)} DSC · "
            f"HF: {format_health_factor(h.health_factor)}"
            for h in positions
        ]
        body = "\n\n".join(lines) if lines else "No open positions."
        dsc = self._engine.get_dsc()
        report = (
            f"📋 Daily Stablecoin Engine Report\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"DSC supply: {self._usd(dsc.total_supply())}\n"
            f"{self._now_str()} UTC"
        )

        await self._send_alert(report)
        logger.info("Daily report sent")
        return report

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Refresh prices and check accounts forever."""
        interval = check_interval_minutes or self._config.check_interval_minutes
        logger.info(
            "Starting continuous monitoring (checking every %d minutes)", interval
        )

        while True:
            try:
                if self._refresher is not None:
                    await self._refresher()
                await self.check_and_alert()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
