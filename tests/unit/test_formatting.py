"""Unit tests for fixed-point rendering."""
from __future__ import annotations

from decimal import Decimal

from src.formatting import format_amount, format_ratio, format_usd, to_decimal, to_jsonable
from src.models import WAD, UINT256_MAX, LenderTotals, PositionResult
from tests.conftest import ACCOUNT_A


class TestToDecimal:
    def test_wad_is_one(self) -> None:
        assert to_decimal(WAD) == Decimal(1)

    def test_exact_for_max_uint(self) -> None:
        rendered = f"{to_decimal(UINT256_MAX):f}"
        assert rendered.replace(".", "") == str(UINT256_MAX)

    def test_custom_decimals(self) -> None:
        assert to_decimal(1_500_000, decimals=6) == Decimal("1.5")


class TestFormatters:
    def test_format_usd(self) -> None:
        assert format_usd(1234 * WAD + WAD // 2) == "$1,234.50"

    def test_format_amount(self) -> None:
        assert format_amount(WAD // 4) == "0.250000"

    def test_format_ratio(self) -> None:
        assert format_ratio(85 * WAD // 100) == "85.00%"
        assert format_ratio(0) == "0.00%"


class TestToJsonable:
    def test_dataclass_fields(self) -> None:
        out = to_jsonable(LenderTotals(total_lend_balance=WAD))
        assert out["total_lend_balance"] == {"raw": str(WAD), "value": "1.000000000000000000"}
        assert out["total_position_usd"]["raw"] == "0"

    def test_market_id_stays_int(self) -> None:
        result = PositionResult(
            market_id=4,
            account=ACCOUNT_A,
            collateral_balance=WAD // 2,
            collateral_value_usd=0,
            debt_owed=0,
            health_factor=0,
            liquidation_incentive=0,
        )
        out = to_jsonable(result)
        assert out["market_id"] == 4
        assert out["account"] == ACCOUNT_A
        assert out["collateral_balance"]["value"] == "0.500000000000000000"

    def test_lists_keep_order(self) -> None:
        out = to_jsonable([LenderTotals(), LenderTotals(total_lend_balance=1)])
        assert [o["total_lend_balance"]["raw"] for o in out] == ["0", "1"]

    def test_bool_passthrough(self) -> None:
        assert to_jsonable(True) is True
