"""
Unit tests for cross-DEX gap detection.
"""

import pytest

from flasharb.core.types import RawAmounts, TokenAddresses, TokenPrice
from flasharb.strategy.opportunity import detect_opportunity, price_gap_pct, price_table
from tests.mocks.opportunities import USDC, WETH, make_opportunity


class TestPriceGap:
    """Tests for price_gap_pct."""

    def test_gap(self) -> None:
        assert price_gap_pct(1800.0, 1818.0) == pytest.approx(1.0)

    def test_non_positive_low(self) -> None:
        assert price_gap_pct(0.0, 10.0) == 0.0


class TestDetectOpportunity:
    """Tests for detect_opportunity."""

    def test_buys_low_sells_high(self) -> None:
        """Source is the cheapest DEX and target the dearest."""
        prices = [
            TokenPrice("SushiSwap", 1818.0),
            TokenPrice("Uniswap", 1800.0),
            TokenPrice("PancakeSwap", 1809.0),
        ]

        opp = detect_opportunity("ETH/USDC", prices, timestamp_ms=1000)

        assert opp is not None
        assert opp.source_dex == "Uniswap"
        assert opp.target_dex == "SushiSwap"
        assert opp.price_gap == pytest.approx(1.0)
        assert opp.potential_profit == pytest.approx(10.0)
        assert opp.id == "1000-ETH/USDC"
        assert opp.timestamp == 1000

    def test_gap_below_threshold_ignored(self) -> None:
        """Small gaps are not reported."""
        prices = [TokenPrice("Uniswap", 1000.0), TokenPrice("SushiSwap", 1004.0)]

        assert detect_opportunity("ETH/USDC", prices, min_gap_pct=0.5) is None

    def test_needs_two_quotes(self) -> None:
        assert detect_opportunity("ETH/USDC", [TokenPrice("Uniswap", 1800.0)]) is None
        assert detect_opportunity("ETH/USDC", []) is None

    def test_zero_quotes_ignored(self) -> None:
        """A DEX answering zero does not count as the cheapest."""
        prices = [
            TokenPrice("Uniswap", 0.0),
            TokenPrice("SushiSwap", 1800.0),
            TokenPrice("PancakeSwap", 1830.0),
        ]

        opp = detect_opportunity("ETH/USDC", prices)

        assert opp is not None
        assert opp.source_dex == "SushiSwap"

    def test_trade_size_scales_profit(self) -> None:
        prices = [TokenPrice("Uniswap", 100.0), TokenPrice("SushiSwap", 102.0)]

        opp = detect_opportunity("X/USDC", prices, trade_size_usd=5000.0)

        assert opp is not None
        assert opp.potential_profit == pytest.approx(100.0)

    def test_token_addresses_attached(self) -> None:
        addresses = TokenAddresses("0xaaa", "0xbbb")
        prices = [TokenPrice("Uniswap", 100.0), TokenPrice("SushiSwap", 102.0)]

        opp = detect_opportunity("X/USDC", prices, token_addresses=addresses)

        assert opp is not None
        assert opp.token_addresses == addresses


class TestOpportunitySerialization:
    def test_raw_amounts_serialized(self) -> None:
        opp = make_opportunity(
            token_addresses=TokenAddresses(WETH, USDC),
            raw_amounts=RawAmounts(amount_in=str(10**18), amount_out="1800000000"),
        )

        row = opp.to_dict()

        assert row["token_addresses"] == {"token0": WETH, "token1": USDC}
        assert row["raw_amounts"] == {"amount_in": "1000000000000000000", "amount_out": "1800000000"}

    def test_missing_details_serialized_as_none(self) -> None:
        row = make_opportunity().to_dict()

        assert row["token_addresses"] is None
        assert row["raw_amounts"] is None


class TestPriceTable:
    """Tests for price_table."""

    def test_rows_annotated(self) -> None:
        prices = [
            TokenPrice("Uniswap", 1820.45),
            TokenPrice("SushiSwap", 1825.12),
            TokenPrice("Curve", 1818.79),
        ]

        rows = price_table(prices)

        assert [r.dex for r in rows] == ["Uniswap", "SushiSwap", "Curve"]
        assert rows[2].is_lowest and rows[2].diff_from_min_pct == 0.0
        assert rows[1].is_highest
        assert rows[0].diff_from_min_pct == pytest.approx((1820.45 - 1818.79) / 1818.79 * 100)

    def test_empty(self) -> None:
        assert price_table([]) == []
