"""Data models — all frozen (immutable).

Monetary fields are unsigned fixed-point integers in the vaults' base unit
(18 decimals, ``10**18 == 1.0``). Nothing here rescales them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .interfaces.vaults import BorrowableVault, CollateralVault

WAD = 10**18
UINT256_MAX = 2**256 - 1


@dataclass(frozen=True)
class Market:
    """One shuttle: a collateral vault paired with a borrowable vault."""

    id: int
    collateral: CollateralVault
    borrowable: BorrowableVault


@dataclass(frozen=True)
class CollateralSnapshot:
    market_id: int
    vault: str
    total_supply: int
    total_balance: int
    total_assets: int
    exchange_rate: int
    debt_ratio: int
    liquidation_fee: int
    liquidation_incentive: int
    token_price: int


@dataclass(frozen=True)
class DebtSnapshot:
    market_id: int
    vault: str
    total_supply: int
    total_balance: int
    total_borrows: int
    total_assets: int
    exchange_rate: int
    reserve_factor: int
    utilization_rate: int
    supply_rate: int
    borrow_rate: int
    underlying_price: int


@dataclass(frozen=True)
class BorrowerPosition:
    """Borrow-side position of one account in one market."""

    market_id: int
    collateral_amount: int
    collateral_value_usd: int
    health_factor: int
    collateral_token_balance: int
    debt_principal: int
    debt_owed: int
    collateral_price: int
    account_liquidity: int
    account_shortfall: int
    collateral_exchange_rate: int


@dataclass(frozen=True)
class LenderPosition:
    """Lend-side position of one account in one market."""

    market_id: int
    lend_token_balance: int
    underlying_value: int
    position_value_usd: int
    underlying_price: int
    lend_exchange_rate: int


@dataclass(frozen=True)
class BorrowerTotals:
    total_principal: int = 0
    total_debt_owed: int = 0
    total_collateral_value_usd: int = 0


@dataclass(frozen=True)
class LenderTotals:
    total_lend_balance: int = 0
    total_underlying_value: int = 0
    total_position_usd: int = 0


@dataclass(frozen=True)
class PositionQuery:
    """One (market, account) pair of a batch read."""

    market_id: int
    account: str


@dataclass(frozen=True)
class PositionResult:
    """Compact borrower-side record returned per PositionQuery."""

    market_id: int
    account: str
    collateral_balance: int
    collateral_value_usd: int
    debt_owed: int
    health_factor: int
    liquidation_incentive: int
