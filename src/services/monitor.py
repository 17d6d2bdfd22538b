"""Monitoring orchestration — iterates configured wallets across every shuttle."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..chains.evm import EvmClient
from ..config import AppConfig, WalletConfig
from ..errors import PositionError
from ..formatting import format_amount, format_ratio, format_usd, to_decimal
from ..interfaces.notifier import Notifier
from ..interfaces.registry import MarketRegistry
from ..models import PositionQuery, PositionResult
from ..notifications import TelegramNotifier
from ..protocols.shuttle import build_registry
from .aggregator import PositionAggregator

logger = logging.getLogger(__name__)


class Monitor:
    """Runs position reads for every configured wallet and dispatches alerts."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._thresholds = config.monitor.thresholds
        self._timeout = config.aggregator.call_timeout

        self._client = EvmClient(config.chain)
        self._registry: MarketRegistry = build_registry(config.registry, self._client)
        self._aggregator = PositionAggregator(config.aggregator.max_concurrency)

        self._notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            self._notifiers.append(TelegramNotifier(config.notifications.telegram))

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_wallet(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    def _get_status(self, health_factor: int) -> str:
        health = float(to_decimal(health_factor))
        if health >= self._thresholds.health_critical:
            return "🚨 CRITICAL"
        if health >= self._thresholds.health_warning:
            return "⚠️ WARNING"
        return "✅ Healthy"

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @property
    def _chain_name(self) -> str:
        return (self._config.chain.name or "evm").upper()

    def _build_log_message(self, result: PositionResult, wallet_label: str) -> str:
        return (
            f"📊 {wallet_label} · shuttle #{result.market_id} · {self._chain_name}\n"
            f"\n"
            f"{self._get_status(result.health_factor)}\n"
            f"\n"
            f"Collateral: {format_amount(result.collateral_balance)} — "
            f"{format_usd(result.collateral_value_usd)}\n"
            f"Debt owed: {format_usd(result.debt_owed)}\n"
            f"Health: {format_ratio(result.health_factor)}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    def _build_alert(
        self, result: PositionResult, wallet: WalletConfig, level: str, advice: str
    ) -> str:
        return (
            f"{level} — health {format_ratio(result.health_factor)}\n"
            f"\n"
            f"{wallet.label} · shuttle #{result.market_id} · {self._chain_name}\n"
            f"\n"
            f"Collateral: {format_usd(result.collateral_value_usd)}\n"
            f"Debt owed: {format_usd(result.debt_owed)}\n"
            f"Liquidation incentive: {format_ratio(result.liquidation_incentive)}\n"
            f"\n"
            f"{advice}\n"
            f"\n"
            f"Wallet: {self._format_wallet(wallet.address)}\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = False) -> None:
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
    # Reads
    # ------------------------------------------------------------------

    async def _wallet_positions(self, wallet: WalletConfig) -> list[PositionResult]:
        """Positions of one wallet in every shuttle where it holds a stake."""

        async def scan() -> list[PositionResult]:
            total = await self._registry.total_markets()
            queries = [PositionQuery(market_id, wallet.address) for market_id in range(total)]
            return await self._aggregator.batch_positions(self._registry, queries)

        results = await asyncio.wait_for(scan(), self._timeout)
        return [r for r in results if r.collateral_balance or r.debt_owed]

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def check_and_alert(self) -> None:
        """Check every wallet's shuttle positions and alert on low health."""
        for wallet in self._config.wallets:
            try:
                positions = await self._wallet_positions(wallet)
            except (PositionError, asyncio.TimeoutError) as e:
                logger.error("Position read failed for %s: %s", wallet.label, e)
                await self._send_log(
                    f"❌ {wallet.label} · {self._chain_name}\n\n"
                    f"Position read failed: {e}\n\n{self._now_str()} UTC",
                    silent=False,
                )
                continue

            if not positions:
                await self._send_log(
                    f"📊 {wallet.label} · {self._chain_name}\n"
                    f"\n"
                    f"No active positions found.\n"
                    f"\n"
                    f"{self._now_str()} UTC",
                    silent=True,
                )
                continue

            for result in positions:
                logger.info(
                    "Position — %s · shuttle #%d · Collateral: %s  Debt: %s  Health: %s",
                    wallet.label,
                    result.market_id,
                    format_usd(result.collateral_value_usd),
                    format_usd(result.debt_owed),
                    format_ratio(result.health_factor),
                )
                await self._send_log(self._build_log_message(result, wallet.label))

                if not result.debt_owed:
                    continue
                health = float(to_decimal(result.health_factor))
                if health >= self._thresholds.health_critical:
                    await self._send_alert(
                        self._build_alert(
                            result, wallet, "🚨 CRITICAL",
                            "⚠️ Add collateral or repay debt immediately!",
                        ),
                        subject="🚨 CRITICAL: Liquidation Risk!",
                    )
                elif health >= self._thresholds.health_warning:
                    await self._send_alert(
                        self._build_alert(
                            result, wallet, "⚠️ WARNING",
                            "Consider adding collateral or repaying part of the debt.",
                        ),
                        subject="⚠️ WARNING: Low Health",
                    )

    async def generate_daily_report(self) -> None:
        """Send one report with borrower and lender totals per wallet."""
        sections: list[str] = []

        for wallet in self._config.wallets:
            try:
                borrower = await asyncio.wait_for(
                    self._aggregator.borrower_position_all_markets(
                        self._registry, wallet.address
                    ),
                    self._timeout,
                )
                lender = await asyncio.wait_for(
                    self._aggregator.lender_position_all_markets(
                        self._registry, wallet.address
                    ),
                    self._timeout,
                )
                positions = await self._wallet_positions(wallet)
            except (PositionError, asyncio.TimeoutError) as e:
                logger.error("Report read failed for %s: %s", wallet.label, e)
                sections.append(f"━━ {wallet.label} ━━\n\nRead failed: {e}")
                continue

            lines = [
                f"Borrowed: {format_usd(borrower.total_debt_owed)} "
                f"(principal {format_usd(borrower.total_principal)})",
                f"Collateral: {format_usd(borrower.total_collateral_value_usd)}",
                f"Lent: {format_usd(lender.total_position_usd)}",
            ]
            for result in positions:
                lines.append(
                    f"  #{result.market_id} · {self._get_status(result.health_factor)} · "
                    f"health {format_ratio(result.health_factor)}"
                )
            sections.append(f"━━ {wallet.label} ━━\n\n" + "\n".join(lines))

        body = "\n\n".join(sections) if sections else "No wallets configured."
        report = (
            f"📋 Daily Shuttle Position Report · {self._chain_name}\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

        await self._send_alert(report)
        logger.info("Daily report sent")

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Run continuous monitoring loop."""
        interval = check_interval_minutes or self._config.monitor.check_interval_minutes
        logger.info(
            "Starting continuous monitoring (checking every %d minutes)", interval
        )

        while True:
            try:
                await self.check_and_alert()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
