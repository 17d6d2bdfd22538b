"""Rendering of 18-decimal fixed-point quantities for humans and JSON."""
from __future__ import annotations

import dataclasses
from decimal import Decimal
from typing import Any

WAD_DECIMALS = 18


def to_decimal(value: int, decimals: int = WAD_DECIMALS) -> Decimal:
    """Exact decimal form of a fixed-point integer (no context rounding)."""
    return Decimal(f"{value}e-{decimals}")


def format_usd(value: int) -> str:
    return f"${to_decimal(value):,.2f}"


def format_amount(value: int) -> str:
    return f"{to_decimal(value):,.6f}"


def format_ratio(value: int) -> str:
    """``0.85e18`` → ``85.00%``."""
    return f"{to_decimal(value) * 100:.2f}%"


def to_jsonable(record: Any) -> Any:
    """Convert result dataclasses to JSON-ready dicts.

    Integers are emitted as ``{"raw": "<int>", "value": "<decimal>"}`` so no
    precision is lost to JSON number handling. ``market_id`` stays an int.
    """
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return {
            f.name: (
                getattr(record, f.name)
                if f.name == "market_id"
                else to_jsonable(getattr(record, f.name))
            )
            for f in dataclasses.fields(record)
        }
    if isinstance(record, (list, tuple)):
        return [to_jsonable(item) for item in record]
    if isinstance(record, bool):
        return record
    if isinstance(record, int):
        return {"raw": str(record), "value": f"{to_decimal(record):f}"}
    return record
