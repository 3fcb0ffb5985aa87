"""
Portfolio Risk Score - Intraday Volatility + Sector Concentration.

Derives a bounded 0-100 risk score for a set of tracked instruments:
- Volatility: intraday range (high - low) / close, scaled by a sector multiplier
- Concentration: Herfindahl-Hirschman index over sector counts

score = round(100 * clamp(0.7 * avg_volatility + 0.3 * concentration, 0, 1))

Instruments with missing or malformed price data contribute zero volatility
but still count toward the average. The calculation never raises on bad
price data and keeps no state between calls.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from quotegate.config import Config, config as default_config
from quotegate.constants import (
    DEFAULT_SECTOR_VOLATILITY,
    HHI_SCALE,
    LARGE_PORTFOLIO_CONCENTRATION,
    MAX_INSTRUMENTS_FOR_HHI,
    MIN_INSTRUMENTS_FOR_HHI,
    SMALL_PORTFOLIO_CONCENTRATION,
    UNKNOWN_SECTOR,
)
from quotegate.logging_config import get_logger

logger = get_logger(__name__)


class RiskLevel(Enum):
    """Risk buckets for the 0-100 score."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    def __str__(self) -> str:
        return self.value


def _is_positive_number(value: Any) -> bool:
    return (
        isinstance(value, Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


@dataclass(frozen=True)
class PriceSnapshot:
    """Latest close and intraday high/low for one instrument."""

    close: float
    high: float
    low: float

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["PriceSnapshot"]:
        """
        Build from ``{"close", "high", "low"}`` or a raw quote ``{"c", "h", "l"}``.

        Values are kept as given; validity is judged by `is_valid`.
        Anything that is not a mapping counts as missing data.
        """
        if not isinstance(data, Mapping) or not data:
            return None
        return cls(
            close=data.get("close", data.get("c")),
            high=data.get("high", data.get("h")),
            low=data.get("low", data.get("l")),
        )

    def is_valid(self) -> bool:
        """All three prices are finite positive numbers and high >= low."""
        return (
            all(_is_positive_number(v) for v in (self.close, self.high, self.low))
            and self.high >= self.low
        )

    @property
    def normalized_range(self) -> float:
        return (self.high - self.low) / abs(self.close)


@dataclass(frozen=True)
class TrackedInstrument:
    """An instrument enriched with sector and price data."""

    symbol: str
    sector: str = UNKNOWN_SECTOR
    current_data: Optional[PriceSnapshot] = None
    company: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrackedInstrument":
        """
        Build from a watchlist row.

        Accepts a flat ``sector`` or a nested ``stock.sector``, and
        ``current_data`` or ``currentData``.
        """
        sector = data.get("sector")
        if sector is None:
            stock = data.get("stock")
            sector = stock.get("sector") if isinstance(stock, Mapping) else None
        if not isinstance(sector, str):
            sector = None

        price_data = data.get("current_data", data.get("currentData"))
        if not isinstance(price_data, PriceSnapshot):
            price_data = PriceSnapshot.from_dict(price_data)

        return cls(
            symbol=str(data.get("symbol", "")),
            sector=sector or UNKNOWN_SECTOR,
            current_data=price_data,
            company=data.get("company") or "",
        )


@dataclass(frozen=True)
class RiskResult:
    """Composite risk score."""

    score: int
    level: RiskLevel
    volatility: float

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "score": self.score,
            "level": self.level.value,
            "volatility": self.volatility,
        }


InstrumentLike = Union[TrackedInstrument, Mapping[str, Any]]


def get_sector_volatility(sector: Optional[str], cfg: Optional[Config] = None) -> float:
    """
    Volatility multiplier for a sector.

    Category names (e.g. "Technology") match directly; provider industry
    names (e.g. "Semiconductors") go through the alias table. Anything else
    gets the neutral multiplier.
    """
    cfg = cfg or default_config
    multipliers = cfg.sector_volatility_multipliers
    if sector in multipliers:
        return multipliers[sector]

    category = cfg.sector_category_aliases.get(sector or "")
    return multipliers.get(category, DEFAULT_SECTOR_VOLATILITY)


def instrument_volatility(instrument: TrackedInstrument, cfg: Optional[Config] = None) -> float:
    """Sector-scaled intraday range, or 0.0 when price data is unusable."""
    quote = instrument.current_data
    if quote is None or not quote.is_valid():
        logger.debug("Invalid quote data for %s: %s", instrument.symbol, quote)
        return 0.0

    normalized = quote.normalized_range
    multiplier = get_sector_volatility(instrument.sector, cfg)
    logger.debug(
        "%s: range=%.2f, vol=%.4f, sector=%s (%.1f)",
        instrument.symbol,
        quote.high - quote.low,
        normalized,
        instrument.sector,
        multiplier,
    )
    return normalized * multiplier


def calculate_concentration_risk(instruments: Sequence[TrackedInstrument]) -> float:
    """
    Sector concentration in [0, 1].

    Below three holdings the sample is too small to judge and concentration
    is assumed high (0.8); above ten, diversification is assumed (0.2).
    In between: min(2 * HHI, 1) over sector shares.
    """
    count = len(instruments)
    if count < MIN_INSTRUMENTS_FOR_HHI:
        return SMALL_PORTFOLIO_CONCENTRATION
    if count > MAX_INSTRUMENTS_FOR_HHI:
        return LARGE_PORTFOLIO_CONCENTRATION

    sectors = pd.Series([item.sector or UNKNOWN_SECTOR for item in instruments])
    shares = sectors.value_counts(normalize=True)
    hhi = float((shares ** 2).sum())

    return min(hhi * HHI_SCALE, 1.0)


def get_risk_level(score: int, cfg: Optional[Config] = None) -> RiskLevel:
    cfg = cfg or default_config
    if score < cfg.risk_threshold_low:
        return RiskLevel.LOW
    if score < cfg.risk_threshold_medium:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def _coerce(item: InstrumentLike) -> TrackedInstrument:
    if isinstance(item, TrackedInstrument):
        return item
    return TrackedInstrument.from_dict(item)


def calculate_portfolio_risk(
    instruments: Iterable[InstrumentLike],
    cfg: Optional[Config] = None,
) -> RiskResult:
    """
    Score the risk of a set of tracked instruments.

    Args:
        instruments: TrackedInstrument objects or equivalent dicts
        cfg: Configuration for weights and thresholds

    Returns:
        RiskResult with score 0-100, level and average volatility

    Example:
        result = calculate_portfolio_risk([
            TrackedInstrument("AAPL", "Technology", PriceSnapshot(100, 102, 98)),
            TrackedInstrument("MSFT", "Technology", PriceSnapshot(100, 102, 98)),
        ])
        result.score  # 28
    """
    cfg = cfg or default_config
    items: List[TrackedInstrument] = [_coerce(item) for item in instruments]

    if not items:
        return RiskResult(score=0, level=RiskLevel.LOW, volatility=0.0)

    volatility_scores = np.array([instrument_volatility(item, cfg) for item in items], dtype=float)
    avg_volatility = float(volatility_scores.mean())
    concentration = calculate_concentration_risk(items)

    raw = cfg.volatility_weight * avg_volatility + cfg.concentration_weight * concentration
    clamped = float(np.clip(raw, 0.0, 1.0))
    # Round half up
    score = int(math.floor(clamped * 100 + 0.5))

    logger.debug(
        "Risk: avg_vol=%.4f, concentration=%.4f, score=%d",
        avg_volatility,
        concentration,
        score,
    )

    return RiskResult(
        score=score,
        level=get_risk_level(score, cfg),
        volatility=avg_volatility,
    )
