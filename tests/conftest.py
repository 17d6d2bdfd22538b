"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from src.config import (
    AggregatorConfig,
    AppConfig,
    ChainConfig,
    MonitorConfig,
    NotificationsConfig,
    RegistryConfig,
    TelegramConfig,
    ThresholdsConfig,
    WalletConfig,
)
from src.errors import UpstreamReadFailure
from src.models import WAD, Market
from src.protocols.shuttle import StaticRegistry

ACCOUNT_A = "0x" + "a1" * 20
ACCOUNT_B = "0x" + "b2" * 20
FACTORY = "0x" + "fa" * 20


def vault_address(market_id: int, kind: str) -> str:
    prefix = "c0" if kind == "collateral" else "d0"
    return "0x" + prefix * 19 + f"{market_id:02x}"


# ---------------------------------------------------------------------------
# In-memory vaults
# ---------------------------------------------------------------------------


class _FakeVault:
    """Records calls; raises UpstreamReadFailure for methods listed in ``failing``."""

    def __init__(self, address: str) -> None:
        self._address = address
        self.failing: set[str] = set()
        self.calls: list[str] = []

    @property
    def address(self) -> str:
        return self._address

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise UpstreamReadFailure(self._address, name, "simulated outage")


class FakeCollateralVault(_FakeVault):
    def __init__(self, address: str, **metrics: int) -> None:
        super().__init__(address)
        self.metrics = {
            "total_supply": 1_000 * WAD,
            "total_balance": 900 * WAD,
            "total_assets": 950 * WAD,
            "exchange_rate": WAD,
            "debt_ratio": 9 * WAD // 10,
            "liquidation_fee": WAD // 100,
            "liquidation_incentive": 105 * WAD // 100,
            "token_price": 2 * WAD,
        }
        self.metrics.update(metrics)
        # account -> (value, value_usd, health)
        self.positions: dict[str, tuple[int, int, int]] = {}
        self.balances: dict[str, int] = {}
        # account -> (liquidity, shortfall)
        self.liquidity: dict[str, tuple[int, int]] = {}

    async def _metric(self, name: str) -> int:
        self._enter(name)
        return self.metrics[name]

    async def total_supply(self) -> int:
        return await self._metric("total_supply")

    async def total_balance(self) -> int:
        return await self._metric("total_balance")

    async def total_assets(self) -> int:
        return await self._metric("total_assets")

    async def exchange_rate(self) -> int:
        return await self._metric("exchange_rate")

    async def debt_ratio(self) -> int:
        return await self._metric("debt_ratio")

    async def liquidation_fee(self) -> int:
        return await self._metric("liquidation_fee")

    async def liquidation_incentive(self) -> int:
        return await self._metric("liquidation_incentive")

    async def token_price(self) -> int:
        return await self._metric("token_price")

    async def balance_of(self, account: str) -> int:
        self._enter("balance_of")
        return self.balances.get(account, 0)

    async def borrower_position(self, account: str) -> tuple[int, int, int]:
        self._enter("borrower_position")
        return self.positions.get(account, (0, 0, 0))

    async def account_liquidity(self, account: str) -> tuple[int, int]:
        self._enter("account_liquidity")
        return self.liquidity.get(account, (0, 0))


class FakeBorrowableVault(_FakeVault):
    def __init__(self, address: str, **metrics: int) -> None:
        super().__init__(address)
        self.metrics = {
            "total_supply": 5_000 * WAD,
            "total_balance": 3_000 * WAD,
            "total_borrows": 2_000 * WAD,
            "total_assets": 5_000 * WAD,
            "exchange_rate": 101 * WAD // 100,
            "reserve_factor": WAD // 10,
            "utilization_rate": 4 * WAD // 10,
            "supply_rate": 3 * WAD // 100,
            "borrow_rate": 8 * WAD // 100,
            "underlying_price": WAD,
        }
        self.metrics.update(metrics)
        # account -> (principal, owed)
        self.debts: dict[str, tuple[int, int]] = {}
        # account -> (lend_balance, underlying_value, value_usd)
        self.lenders: dict[str, tuple[int, int, int]] = {}

    async def _metric(self, name: str) -> int:
        self._enter(name)
        return self.metrics[name]

    async def total_supply(self) -> int:
        return await self._metric("total_supply")

    async def total_balance(self) -> int:
        return await self._metric("total_balance")

    async def total_borrows(self) -> int:
        return await self._metric("total_borrows")

    async def total_assets(self) -> int:
        return await self._metric("total_assets")

    async def exchange_rate(self) -> int:
        return await self._metric("exchange_rate")

    async def reserve_factor(self) -> int:
        return await self._metric("reserve_factor")

    async def utilization_rate(self) -> int:
        return await self._metric("utilization_rate")

    async def supply_rate(self) -> int:
        return await self._metric("supply_rate")

    async def borrow_rate(self) -> int:
        return await self._metric("borrow_rate")

    async def underlying_price(self) -> int:
        return await self._metric("underlying_price")

    async def borrow_balance(self, account: str) -> tuple[int, int]:
        self._enter("borrow_balance")
        return self.debts.get(account, (0, 0))

    async def lender_position(self, account: str) -> tuple[int, int, int]:
        self._enter("lender_position")
        return self.lenders.get(account, (0, 0, 0))


def make_market(market_id: int) -> Market:
    return Market(
        id=market_id,
        collateral=FakeCollateralVault(vault_address(market_id, "collateral")),
        borrowable=FakeBorrowableVault(vault_address(market_id, "borrowable")),
    )


@pytest.fixture()
def markets() -> list[Market]:
    """Three empty markets, ids 0, 1, 2."""
    return [make_market(i) for i in range(3)]


@pytest.fixture()
def registry(markets: list[Market]) -> StaticRegistry:
    return StaticRegistry(markets)


@pytest.fixture()
def registry_factory() -> Callable[[int], StaticRegistry]:
    def build(count: int) -> StaticRegistry:
        return StaticRegistry([make_market(i) for i in range(count)])

    return build


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_thresholds() -> ThresholdsConfig:
    return ThresholdsConfig(health_warning=0.80, health_critical=0.95)


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        name="arbitrum",
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_app_config(
    sample_thresholds: ThresholdsConfig,
    sample_chain_config: ChainConfig,
) -> AppConfig:
    return AppConfig(
        monitor=MonitorConfig(check_interval_minutes=5, thresholds=sample_thresholds),
        aggregator=AggregatorConfig(max_concurrency=4, call_timeout=5.0),
        chain=sample_chain_config,
        registry=RegistryConfig(source="factory", factory_address=FACTORY),
        wallets=(WalletConfig(label="test-wallet", address=ACCOUNT_A),),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    monitor:
      check_interval_minutes: 5
      thresholds:
        health_warning: 0.75
        health_critical: 0.9
    aggregator:
      max_concurrency: 8
      call_timeout: 20
    chain:
      name: arbitrum
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    registry:
      source: static
      markets:
        - collateral: "{vault_address(0, 'collateral')}"
          borrowable: "{vault_address(0, 'borrowable')}"
        - collateral: "{vault_address(1, 'collateral')}"
          borrowable: "{vault_address(1, 'borrowable')}"
    wallets:
      - label: test-wallet
        address: "{ACCOUNT_A}"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
