"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from eth_utils import is_address

logger = logging.getLogger(__name__)

REGISTRY_SOURCES = ("factory", "static")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ThresholdsConfig:
    """Health-factor alert levels, as a fraction of the liquidation limit."""

    health_warning: float = 0.80
    health_critical: float = 0.95


@dataclass(frozen=True)
class MonitorConfig:
    check_interval_minutes: int = 15
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)


@dataclass(frozen=True)
class AggregatorConfig:
    max_concurrency: int = 16
    call_timeout: float = 60.0


@dataclass(frozen=True)
class ChainConfig:
    name: str = ""
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class MarketConfig:
    collateral: str = ""
    borrowable: str = ""


@dataclass(frozen=True)
class RegistryConfig:
    source: str = "factory"
    factory_address: str = ""
    markets: tuple[MarketConfig, ...] = ()


@dataclass(frozen=True)
class WalletConfig:
    label: str = ""
    address: str = ""


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    wallets: tuple[WalletConfig, ...] = ()
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    thresholds = raw.get("thresholds", {})
    return MonitorConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 15)),
        thresholds=ThresholdsConfig(
            health_warning=float(thresholds.get("health_warning", 0.80)),
            health_critical=float(thresholds.get("health_critical", 0.95)),
        ),
    )


def _build_aggregator(raw: dict[str, Any]) -> AggregatorConfig:
    return AggregatorConfig(
        max_concurrency=int(raw.get("max_concurrency", 16)),
        call_timeout=float(raw.get("call_timeout", 60.0)),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        name=raw.get("name", ""),
        rpc_endpoints=tuple(raw.get("rpc_endpoints", [])),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_registry(raw: dict[str, Any]) -> RegistryConfig:
    return RegistryConfig(
        source=raw.get("source", "factory"),
        factory_address=raw.get("factory_address", ""),
        markets=tuple(
            MarketConfig(
                collateral=m.get("collateral", ""),
                borrowable=m.get("borrowable", ""),
            )
            for m in raw.get("markets", [])
        ),
    )


def _build_wallets(raw: list[dict[str, Any]]) -> tuple[WalletConfig, ...]:
    return tuple(
        WalletConfig(label=w.get("label", ""), address=w.get("address", ""))
        for w in raw
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from the package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        monitor=_build_monitor(raw.get("monitor", {})),
        aggregator=_build_aggregator(raw.get("aggregator", {})),
        chain=_build_chain(raw.get("chain", {})),
        registry=_build_registry(raw.get("registry", {})),
        wallets=_build_wallets(raw.get("wallets", [])),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    registry = cfg.registry
    if registry.source not in REGISTRY_SOURCES:
        raise ValueError(
            f"Unknown registry source '{registry.source}' "
            f"(expected one of {', '.join(REGISTRY_SOURCES)})"
        )
    if registry.source == "factory" and not is_address(registry.factory_address):
        raise ValueError("Factory registry needs a valid factory_address")
    if registry.source == "static":
        if not registry.markets:
            raise ValueError("Static registry needs at least one market")
        for index, market in enumerate(registry.markets):
            if not (is_address(market.collateral) and is_address(market.borrowable)):
                raise ValueError(f"Market {index} has an invalid vault address")

    for wallet in cfg.wallets:
        if not wallet.address:
            raise ValueError(f"Wallet '{wallet.label}' has no address")
        if not is_address(wallet.address):
            raise ValueError(
                f"Wallet '{wallet.label}' has an invalid address '{wallet.address}'"
            )

    thresholds = cfg.monitor.thresholds
    if not 0 < thresholds.health_warning <= thresholds.health_critical:
        raise ValueError("Health thresholds must satisfy 0 < warning <= critical")

    if cfg.aggregator.max_concurrency < 1:
        raise ValueError("aggregator.max_concurrency must be at least 1")
