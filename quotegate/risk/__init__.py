"""
Portfolio risk scoring.

- calculate_portfolio_risk: 0-100 score from volatility and sector concentration
- TrackedInstrument / PriceSnapshot: calculator inputs
- RiskResult / RiskLevel: calculator output
"""

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

__all__ = [
    "PriceSnapshot",
    "RiskLevel",
    "RiskResult",
    "TrackedInstrument",
    "calculate_concentration_risk",
    "calculate_portfolio_risk",
    "get_risk_level",
    "get_sector_volatility",
    "instrument_volatility",
]
