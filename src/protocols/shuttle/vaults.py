"""On-chain shuttle vaults read through ``eth_call``."""
from __future__ import annotations

import logging
from typing import Any

from ...errors import UpstreamReadFailure
from ...interfaces.chain import ChainClient
from . import abi
from .abi import ContractFunction

logger = logging.getLogger(__name__)


class ContractReader:
    """Shared read path: encode, call, decode, wrap failures."""

    def __init__(self, client: ChainClient, address: str) -> None:
        self._client = client
        self._address = abi.normalize_address(address)

    @property
    def address(self) -> str:
        return self._address

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._address})"

    async def _read(self, function: ContractFunction, *args: Any) -> tuple[Any, ...]:
        calldata = function.encode_call(*args)
        try:
            data = await self._client.eth_call(self._address, calldata)
            return function.decode_result(data)
        except Exception as e:
            logger.debug("%s on %s failed: %s", function.signature, self._address, e)
            raise UpstreamReadFailure(self._address, function.signature, str(e)) from e

    async def _read_uint(self, function: ContractFunction, *args: Any) -> int:
        (value,) = await self._read(function, *args)
        return value


class EvmCollateralVault(ContractReader):
    """Collateral vault of one shuttle."""

    async def total_supply(self) -> int:
        return await self._read_uint(abi.TOTAL_SUPPLY)

    async def total_balance(self) -> int:
        return await self._read_uint(abi.TOTAL_BALANCE)

    async def total_assets(self) -> int:
        return await self._read_uint(abi.TOTAL_ASSETS)

    async def exchange_rate(self) -> int:
        return await self._read_uint(abi.EXCHANGE_RATE)

    async def debt_ratio(self) -> int:
        return await self._read_uint(abi.DEBT_RATIO)

    async def liquidation_fee(self) -> int:
        return await self._read_uint(abi.LIQUIDATION_FEE)

    async def liquidation_incentive(self) -> int:
        return await self._read_uint(abi.LIQUIDATION_INCENTIVE)

    async def token_price(self) -> int:
        return await self._read_uint(abi.LP_TOKEN_PRICE)

    async def balance_of(self, account: str) -> int:
        return await self._read_uint(abi.BALANCE_OF, abi.normalize_address(account))

    async def borrower_position(self, account: str) -> tuple[int, int, int]:
        value, value_usd, health = await self._read(
            abi.GET_BORROWER_POSITION, abi.normalize_address(account)
        )
        return value, value_usd, health

    async def account_liquidity(self, account: str) -> tuple[int, int]:
        liquidity, shortfall = await self._read(
            abi.GET_ACCOUNT_LIQUIDITY, abi.normalize_address(account)
        )
        return liquidity, shortfall


class EvmBorrowableVault(ContractReader):
    """Borrowable vault of one shuttle."""

    async def total_supply(self) -> int:
        return await self._read_uint(abi.TOTAL_SUPPLY)

    async def total_balance(self) -> int:
        return await self._read_uint(abi.TOTAL_BALANCE)

    async def total_borrows(self) -> int:
        return await self._read_uint(abi.TOTAL_BORROWS)

    async def total_assets(self) -> int:
        return await self._read_uint(abi.TOTAL_ASSETS)

    async def exchange_rate(self) -> int:
        return await self._read_uint(abi.EXCHANGE_RATE)

    async def reserve_factor(self) -> int:
        return await self._read_uint(abi.RESERVE_FACTOR)

    async def utilization_rate(self) -> int:
        return await self._read_uint(abi.UTILIZATION_RATE)

    async def supply_rate(self) -> int:
        return await self._read_uint(abi.SUPPLY_RATE)

    async def borrow_rate(self) -> int:
        return await self._read_uint(abi.BORROW_RATE)

    async def underlying_price(self) -> int:
        return await self._read_uint(abi.USD_PRICE)

    async def borrow_balance(self, account: str) -> tuple[int, int]:
        principal, owed = await self._read(
            abi.GET_BORROW_BALANCE, abi.normalize_address(account)
        )
        return principal, owed

    async def lender_position(self, account: str) -> tuple[int, int, int]:
        balance, underlying_value, value_usd = await self._read(
            abi.GET_LENDER_POSITION, abi.normalize_address(account)
        )
        return balance, underlying_value, value_usd
