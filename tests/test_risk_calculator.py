"""Unit tests for the portfolio risk score."""

import math

import pytest

from quotegate.config import Config
from quotegate.risk.calculator import (
    PriceSnapshot,
    RiskLevel,
    RiskResult,
    TrackedInstrument,
    calculate_concentration_risk,
    calculate_portfolio_risk,
    get_risk_level,
    get_sector_volatility,
    instrument_volatility,
)


def _instrument(symbol, sector, close=100.0, high=102.0, low=98.0):
    return TrackedInstrument(symbol, sector, PriceSnapshot(close=close, high=high, low=low))


class TestPortfolioRiskExamples:
    """Worked examples with known scores."""

    def test_empty_portfolio(self):
        result = calculate_portfolio_risk([])

        assert result == RiskResult(score=0, level=RiskLevel.LOW, volatility=0.0)
        assert result.to_dict() == {"score": 0, "level": "LOW", "volatility": 0.0}

    def test_two_technology_holdings(self):
        result = calculate_portfolio_risk([
            _instrument("AAPL", "Technology"),
            _instrument("MSFT", "Technology"),
        ])

        # 0.7 * 0.052 + 0.3 * 0.8 = 0.2764
        assert result.volatility == pytest.approx(0.052)
        assert result.score == 28
        assert result.level == RiskLevel.LOW

    def test_single_holding_without_price_data(self):
        result = calculate_portfolio_risk([TrackedInstrument("AAPL", "Technology", None)])

        assert result.volatility == 0.0
        assert result.score == 24
        assert result.level == RiskLevel.LOW

    def test_invalid_data_stays_in_denominator(self):
        result = calculate_portfolio_risk([
            _instrument("AAPL", "Technology"),
            TrackedInstrument("MSFT", "Technology", None),
        ])
        assert result.volatility == pytest.approx(0.026)

    def test_high_volatility_clamps_to_100(self):
        result = calculate_portfolio_risk([
            _instrument("XOM", "Energy", close=10.0, high=30.0, low=5.0),
        ])

        assert result.score == 100
        assert result.level == RiskLevel.HIGH

    def test_mid_size_portfolio_uses_hhi(self):
        instruments = [
            _instrument("AAPL", "Technology"),
            _instrument("MSFT", "Technology"),
            _instrument("XOM", "Energy"),
            _instrument("JPM", "Finance"),
        ]
        result = calculate_portfolio_risk(instruments)

        # HHI = 0.5^2 + 0.25^2 + 0.25^2 = 0.375 -> concentration 0.75
        vol = 0.04 * (1.3 + 1.3 + 1.5 + 1.2) / 4
        expected = round((0.7 * vol + 0.3 * 0.75) * 100)
        assert result.volatility == pytest.approx(vol)
        assert result.score == expected
        assert result.level == RiskLevel.LOW

    def test_accepts_raw_dicts(self):
        rows = [
            {"symbol": "AAPL", "stock": {"sector": "Technology"}, "currentData": {"c": 100, "h": 102, "l": 98}},
            {"symbol": "MSFT", "sector": "Technology", "current_data": {"close": 100, "high": 102, "low": 98}},
        ]
        assert calculate_portfolio_risk(rows).score == 28

    def test_inverted_range_scores_as_missing_data(self):
        result = calculate_portfolio_risk([
            _instrument("XOM", "Energy", close=100.0, high=90.0, low=110.0),
        ])

        assert result.volatility == 0.0
        assert result.score == 24
        assert result.level == RiskLevel.LOW

    @pytest.mark.parametrize("price_data", ["n/a", [100, 102, 98], 100])
    def test_non_mapping_price_data_counts_as_missing(self, price_data):
        row = {"symbol": "A", "sector": "Technology", "currentData": price_data}

        assert TrackedInstrument.from_dict(row).current_data is None
        result = calculate_portfolio_risk([row])
        assert result.volatility == 0.0
        assert result.score == 24

    @pytest.mark.parametrize("row", [
        {"symbol": "A", "stock": "Technology"},
        {"symbol": "A", "stock": ["Technology"]},
        {"symbol": "A", "sector": 42},
    ])
    def test_malformed_sector_falls_back_to_unknown(self, row):
        row = {**row, "currentData": {"c": 100, "h": 102, "l": 98}}

        assert TrackedInstrument.from_dict(row).sector == "Unknown"
        result = calculate_portfolio_risk([row])
        # 0.7 * 0.04 + 0.3 * 0.8 = 0.268
        assert result.volatility == pytest.approx(0.04)
        assert result.score == 27
        assert result.level == RiskLevel.LOW

    def test_deterministic(self):
        instruments = [_instrument("AAPL", "Technology"), _instrument("XOM", "Energy")]
        assert calculate_portfolio_risk(instruments) == calculate_portfolio_risk(instruments)


class TestInstrumentVolatility:

    @pytest.mark.parametrize("snapshot", [
        None,
        PriceSnapshot(close=0, high=102, low=98),
        PriceSnapshot(close=100, high=-1, low=98),
        PriceSnapshot(close=100, high=102, low=None),
        PriceSnapshot(close=math.nan, high=102, low=98),
        PriceSnapshot(close=100, high=math.inf, low=98),
        PriceSnapshot(close="100", high=102, low=98),
        PriceSnapshot(close=True, high=102, low=98),
        PriceSnapshot(close=100, high=90, low=110),
        PriceSnapshot(close=100, high=98, low=102),
    ])
    def test_invalid_price_data_contributes_zero(self, snapshot):
        assert instrument_volatility(TrackedInstrument("X", "Technology", snapshot)) == 0.0

    def test_normalized_range_times_multiplier(self):
        vol = instrument_volatility(_instrument("XOM", "Energy", close=50, high=51, low=49))
        assert vol == pytest.approx(0.04 * 1.5)


class TestSectorVolatility:

    @pytest.mark.parametrize("sector,expected", [
        ("Technology", 1.3),
        ("Healthcare", 1.1),
        ("Energy", 1.5),
        ("Finance", 1.2),
        ("Consumer", 0.9),
        ("Semiconductors", 1.3),
        ("Banks", 1.2),
        ("Biotechnology", 1.1),
        ("Oil & Gas E&P", 1.5),
        ("Retail", 0.9),
        ("Utilities", 1.0),
        ("Unknown", 1.0),
        (None, 1.0),
    ])
    def test_multipliers(self, sector, expected):
        assert get_sector_volatility(sector) == expected


class TestConcentrationRisk:

    def test_small_portfolio_override(self):
        instruments = [_instrument("AAPL", "Technology"), _instrument("XOM", "Energy")]
        assert calculate_concentration_risk(instruments) == 0.8

    def test_large_portfolio_override(self):
        instruments = [_instrument(f"T{i}", "Technology") for i in range(11)]
        assert calculate_concentration_risk(instruments) == 0.2

    def test_single_sector_clamps_to_one(self):
        instruments = [_instrument(f"T{i}", "Technology") for i in range(5)]
        assert calculate_concentration_risk(instruments) == 1.0

    def test_diversified(self):
        sectors = ["Technology", "Energy", "Finance", "Healthcare", "Consumer"]
        instruments = [_instrument(s[:3], s) for s in sectors]
        # HHI = 5 * 0.2^2 = 0.2
        assert calculate_concentration_risk(instruments) == pytest.approx(0.4)

    def test_missing_sector_counts_as_unknown(self):
        instruments = [
            TrackedInstrument("A", ""),
            TrackedInstrument("B", "Unknown"),
            TrackedInstrument("C", "Energy"),
        ]
        # Unknown 2/3, Energy 1/3 -> HHI 5/9
        assert calculate_concentration_risk(instruments) == pytest.approx(1.0)


class TestRiskLevel:

    @pytest.mark.parametrize("score,level", [
        (0, RiskLevel.LOW),
        (29, RiskLevel.LOW),
        (30, RiskLevel.MEDIUM),
        (59, RiskLevel.MEDIUM),
        (60, RiskLevel.HIGH),
        (100, RiskLevel.HIGH),
    ])
    def test_thresholds(self, score, level):
        assert get_risk_level(score) == level

    def test_custom_thresholds(self):
        cfg = Config(risk_threshold_low=10, risk_threshold_medium=20)
        assert get_risk_level(15, cfg) == RiskLevel.MEDIUM

    def test_string_value(self):
        assert str(RiskLevel.HIGH) == "HIGH"
