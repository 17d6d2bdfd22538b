"""Market registries: config-defined and on-chain factory."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from ...config import RegistryConfig
from ...errors import MarketNotFound, UpstreamReadFailure
from ...interfaces.chain import ChainClient
from ...interfaces.registry import MarketRegistry
from ...models import Market
from . import abi
from .vaults import ContractReader, EvmBorrowableVault, EvmCollateralVault

logger = logging.getLogger(__name__)

_ZERO_ADDRESS = "0x" + "00" * 20


class StaticRegistry:
    """Tuple-backed registry; a market's id is its index."""

    def __init__(self, markets: Sequence[Market]) -> None:
        for index, market in enumerate(markets):
            if market.id != index:
                raise ValueError(f"Market at index {index} has id {market.id}")
        self._markets = tuple(markets)

    @classmethod
    def from_config(cls, config: RegistryConfig, client: ChainClient) -> StaticRegistry:
        return cls(
            [
                Market(
                    id=index,
                    collateral=EvmCollateralVault(client, m.collateral),
                    borrowable=EvmBorrowableVault(client, m.borrowable),
                )
                for index, m in enumerate(config.markets)
            ]
        )

    async def total_markets(self) -> int:
        return len(self._markets)

    async def market(self, market_id: int) -> Market:
        if not 0 <= market_id < len(self._markets):
            raise MarketNotFound(market_id, len(self._markets))
        return self._markets[market_id]


class FactoryRegistry(ContractReader):
    """Registry read from the factory contract that deploys shuttles.

    Reads go to the chain on every call. ``market`` reads only the shuttle
    record; range checks against the count are the caller's job. An id the
    factory never launched comes back as an all-zero record.
    """

    async def total_markets(self) -> int:
        (count,) = await self._read(abi.SHUTTLES_DEPLOYED)
        return count

    async def market(self, market_id: int) -> Market:
        if market_id < 0:
            raise MarketNotFound(market_id)

        launched, shuttle_id, borrowable, collateral, _ = await self._read(
            abi.ALL_SHUTTLES, market_id
        )
        zero = (borrowable.lower() == _ZERO_ADDRESS, collateral.lower() == _ZERO_ADDRESS)
        if not launched and all(zero):
            raise MarketNotFound(market_id)
        if shuttle_id != market_id or any(zero):
            raise UpstreamReadFailure(
                self._address,
                abi.ALL_SHUTTLES.signature,
                f"malformed record for shuttle {market_id}",
            )

        logger.debug(
            "Shuttle %d: collateral %s, borrowable %s", market_id, collateral, borrowable
        )
        return Market(
            id=market_id,
            collateral=EvmCollateralVault(self._client, collateral),
            borrowable=EvmBorrowableVault(self._client, borrowable),
        )


def build_registry(config: RegistryConfig, client: ChainClient) -> MarketRegistry:
    """Build the registry selected by ``config.source``."""
    if config.source == "static":
        return StaticRegistry.from_config(config, client)
    if config.source == "factory":
        return FactoryRegistry(client, config.factory_address)
    raise ValueError(f"Unknown registry source '{config.source}'")
