"""Vault protocols — read accessors of a shuttle's two vaults.

Every accessor returns unsigned fixed-point integers. An account with no stake
in the vault reads as zero; it is never an error.
"""
from typing import Protocol


class CollateralVault(Protocol):
    """Read interface of a collateral vault."""

    @property
    def address(self) -> str: ...

    async def total_supply(self) -> int: ...

    async def total_balance(self) -> int: ...

    async def total_assets(self) -> int: ...

    async def exchange_rate(self) -> int: ...

    async def debt_ratio(self) -> int: ...

    async def liquidation_fee(self) -> int: ...

    async def liquidation_incentive(self) -> int: ...

    async def token_price(self) -> int: ...

    async def balance_of(self, account: str) -> int: ...

    async def borrower_position(self, account: str) -> tuple[int, int, int]:
        """Return ``(value, value_usd, health)``."""
        ...

    async def account_liquidity(self, account: str) -> tuple[int, int]:
        """Return ``(liquidity, shortfall)``."""
        ...


class BorrowableVault(Protocol):
    """Read interface of a borrowable (debt) vault."""

    @property
    def address(self) -> str: ...

    async def total_supply(self) -> int: ...

    async def total_balance(self) -> int: ...

    async def total_borrows(self) -> int: ...

    async def total_assets(self) -> int: ...

    async def exchange_rate(self) -> int: ...

    async def reserve_factor(self) -> int: ...

    async def utilization_rate(self) -> int: ...

    async def supply_rate(self) -> int: ...

    async def borrow_rate(self) -> int: ...

    async def underlying_price(self) -> int: ...

    async def borrow_balance(self, account: str) -> tuple[int, int]:
        """Return ``(principal, owed)``."""
        ...

    async def lender_position(self, account: str) -> tuple[int, int, int]:
        """Return ``(lend_balance, underlying_value, value_usd)``."""
        ...
