"""Position aggregation — folds per-market vault reads into account positions.

Every operation takes the registry handle first, resolves market ids through
it, reads the resolved vaults and folds the reads into one result. Nothing is
cached between calls. A failing read aborts the whole call: sibling reads are
cancelled and the error is re-raised, so callers never see a partial sum.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, TypeVar

from ..errors import AccumulationOverflow, MarketNotFound
from ..interfaces.registry import MarketRegistry
from ..models import (
    UINT256_MAX,
    BorrowerPosition,
    BorrowerTotals,
    CollateralSnapshot,
    DebtSnapshot,
    LenderPosition,
    LenderTotals,
    Market,
    PositionQuery,
    PositionResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_MAX_CONCURRENCY = 16


async def _gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Await every awaitable; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # Collect the cancelled siblings so none is left pending.
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _checked_sum(values: Iterable[int], field: str) -> int:
    """Sum unsigned fixed-point values, refusing to leave the uint256 range."""
    total = 0
    for value in values:
        total += value
        if total > UINT256_MAX:
            raise AccumulationOverflow(f"{field} exceeds the uint256 range")
    return total


class PositionAggregator:
    """Read-only query facade over a market registry and its vaults."""

    def __init__(self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._max_concurrency = max_concurrency

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _map_bounded(
        self, func: Callable[[T], Awaitable[R]], items: Sequence[T]
    ) -> list[R]:
        """Run ``func`` over ``items`` concurrently, results in input order."""
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(item: T) -> R:
            async with semaphore:
                return await func(item)

        return await _gather_all(*(run(item) for item in items))

    @staticmethod
    async def _resolve(
        registry: MarketRegistry, market_id: int, total: int | None = None
    ) -> Market:
        if total is None:
            total = await registry.total_markets()
        if not 0 <= market_id < total:
            raise MarketNotFound(market_id, total)
        return await registry.market(market_id)

    async def _all_markets(self, registry: MarketRegistry) -> list[Market]:
        total = await registry.total_markets()
        logger.debug("Scanning %d markets", total)
        return await self._map_bounded(
            lambda market_id: self._resolve(registry, market_id, total),
            range(total),
        )

    # ------------------------------------------------------------------
    # Single-market reads
    # ------------------------------------------------------------------

    async def get_market_snapshot(
        self, registry: MarketRegistry, market_id: int
    ) -> tuple[CollateralSnapshot, DebtSnapshot]:
        """Project both vaults' public metrics for one market."""
        market = await self._resolve(registry, market_id)
        collateral, borrowable = market.collateral, market.borrowable

        (
            c_supply, c_balance, c_assets, c_rate,
            debt_ratio, liq_fee, liq_incentive, token_price,
            d_supply, d_balance, d_borrows, d_assets, d_rate,
            reserve_factor, utilization, supply_rate, borrow_rate, underlying_price,
        ) = await _gather_all(
            collateral.total_supply(),
            collateral.total_balance(),
            collateral.total_assets(),
            collateral.exchange_rate(),
            collateral.debt_ratio(),
            collateral.liquidation_fee(),
            collateral.liquidation_incentive(),
            collateral.token_price(),
            borrowable.total_supply(),
            borrowable.total_balance(),
            borrowable.total_borrows(),
            borrowable.total_assets(),
            borrowable.exchange_rate(),
            borrowable.reserve_factor(),
            borrowable.utilization_rate(),
            borrowable.supply_rate(),
            borrowable.borrow_rate(),
            borrowable.underlying_price(),
        )

        return (
            CollateralSnapshot(
                market_id=market.id,
                vault=collateral.address,
                total_supply=c_supply,
                total_balance=c_balance,
                total_assets=c_assets,
                exchange_rate=c_rate,
                debt_ratio=debt_ratio,
                liquidation_fee=liq_fee,
                liquidation_incentive=liq_incentive,
                token_price=token_price,
            ),
            DebtSnapshot(
                market_id=market.id,
                vault=borrowable.address,
                total_supply=d_supply,
                total_balance=d_balance,
                total_borrows=d_borrows,
                total_assets=d_assets,
                exchange_rate=d_rate,
                reserve_factor=reserve_factor,
                utilization_rate=utilization,
                supply_rate=supply_rate,
                borrow_rate=borrow_rate,
                underlying_price=underlying_price,
            ),
        )

    async def borrower_position(
        self, registry: MarketRegistry, market_id: int, account: str
    ) -> BorrowerPosition:
        """Borrow-side position of ``account`` in one market."""
        market = await self._resolve(registry, market_id)
        collateral, borrowable = market.collateral, market.borrowable

        (
            (amount, value_usd, health),
            token_balance,
            (principal, owed),
            price,
            (liquidity, shortfall),
            exchange_rate,
        ) = await _gather_all(
            collateral.borrower_position(account),
            collateral.balance_of(account),
            borrowable.borrow_balance(account),
            collateral.token_price(),
            collateral.account_liquidity(account),
            collateral.exchange_rate(),
        )

        return BorrowerPosition(
            market_id=market.id,
            collateral_amount=amount,
            collateral_value_usd=value_usd,
            health_factor=health,
            collateral_token_balance=token_balance,
            debt_principal=principal,
            debt_owed=owed,
            collateral_price=price,
            account_liquidity=liquidity,
            account_shortfall=shortfall,
            collateral_exchange_rate=exchange_rate,
        )

    async def lender_position(
        self, registry: MarketRegistry, market_id: int, account: str
    ) -> LenderPosition:
        """Lend-side position of ``account`` in one market."""
        market = await self._resolve(registry, market_id)
        borrowable = market.borrowable

        (lend_balance, underlying_value, value_usd), price, exchange_rate = (
            await _gather_all(
                borrowable.lender_position(account),
                borrowable.underlying_price(),
                borrowable.exchange_rate(),
            )
        )

        return LenderPosition(
            market_id=market.id,
            lend_token_balance=lend_balance,
            underlying_value=underlying_value,
            position_value_usd=value_usd,
            underlying_price=price,
            lend_exchange_rate=exchange_rate,
        )

    # ------------------------------------------------------------------
    # Full scans
    # ------------------------------------------------------------------

    async def borrower_position_all_markets(
        self, registry: MarketRegistry, account: str
    ) -> BorrowerTotals:
        """Sum principal, debt owed and collateral USD value over every market."""

        async def contribution(market: Market) -> tuple[int, int, int]:
            (principal, owed), (_, value_usd, _) = await _gather_all(
                market.borrowable.borrow_balance(account),
                market.collateral.borrower_position(account),
            )
            return principal, owed, value_usd

        markets = await self._all_markets(registry)
        contributions = await self._map_bounded(contribution, markets)
        logger.debug(
            "Borrower scan for %s folded %d markets", account, len(contributions)
        )

        return BorrowerTotals(
            total_principal=_checked_sum((c[0] for c in contributions), "total_principal"),
            total_debt_owed=_checked_sum((c[1] for c in contributions), "total_debt_owed"),
            total_collateral_value_usd=_checked_sum(
                (c[2] for c in contributions), "total_collateral_value_usd"
            ),
        )

    async def lender_position_all_markets(
        self, registry: MarketRegistry, account: str
    ) -> LenderTotals:
        """Sum lend balance, underlying value and USD value over every market."""

        async def contribution(market: Market) -> tuple[int, int, int]:
            return await market.borrowable.lender_position(account)

        markets = await self._all_markets(registry)
        contributions = await self._map_bounded(contribution, markets)
        logger.debug(
            "Lender scan for %s folded %d markets", account, len(contributions)
        )

        return LenderTotals(
            total_lend_balance=_checked_sum((c[0] for c in contributions), "total_lend_balance"),
            total_underlying_value=_checked_sum(
                (c[1] for c in contributions), "total_underlying_value"
            ),
            total_position_usd=_checked_sum((c[2] for c in contributions), "total_position_usd"),
        )

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def batch_positions(
        self, registry: MarketRegistry, queries: Sequence[PositionQuery]
    ) -> list[PositionResult]:
        """Compact borrower records, one per query, in input order.

        Duplicate queries are answered independently and never merged.
        """
        if not queries:
            return []

        total = await registry.total_markets()
        market_ids = list(dict.fromkeys(q.market_id for q in queries))
        resolved = await self._map_bounded(
            lambda market_id: self._resolve(registry, market_id, total), market_ids
        )
        markets = dict(zip(market_ids, resolved))

        async def answer(query: PositionQuery) -> PositionResult:
            market = markets[query.market_id]
            balance, (_, value_usd, health), (_, owed), incentive = await _gather_all(
                market.collateral.balance_of(query.account),
                market.collateral.borrower_position(query.account),
                market.borrowable.borrow_balance(query.account),
                market.collateral.liquidation_incentive(),
            )
            return PositionResult(
                market_id=query.market_id,
                account=query.account,
                collateral_balance=balance,
                collateral_value_usd=value_usd,
                debt_owed=owed,
                health_factor=health,
                liquidation_incentive=incentive,
            )

        logger.debug(
            "Batch of %d queries over %d markets", len(queries), len(market_ids)
        )
        return await self._map_bounded(answer, queries)
