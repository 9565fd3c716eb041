"""Market indicator bundle (options open-interest storage dashboard)."""

from __future__ import annotations

from pydantic import Field, field_validator

from pyfeedsync.models._base import FeedBaseModel


class Zone(FeedBaseModel):
    """Open-interest figures for one strike in a support/resistance zone.

    ``*_change_pct`` fields are percentage changes (``12.5`` means 12.5 %).
    ``interpretation_code`` is the upstream classification, e.g.
    ``STRONG_BUY``, ``HEAVY_SUPPORT``, ``LONG_UNWINDING``, ``STRONG_SELL``,
    ``HEAVY_RESISTANCE`` or ``SHORT_COVERING``.
    """

    strike: float
    call_oi: float
    call_oi_change: float
    call_oi_change_pct: float
    put_oi: float
    put_oi_change: float
    put_oi_change_pct: float
    interpretation: str
    interpretation_code: str

    @field_validator("interpretation_code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class KeyIndicators(FeedBaseModel):
    pcr_oi: float
    pcr_interpretation: str
    net_oi_change: float
    net_oi_interpretation: str


class MarketOutlook(FeedBaseModel):
    direction_symbol: str
    confidence: str
    signals: list[str] = Field(default_factory=list)


class Zones(FeedBaseModel):
    support: list[Zone]
    resistance: list[Zone]


class ZoneSummary(FeedBaseModel):
    summary: str


class CrossStrikeAnalysis(FeedBaseModel):
    bias_interpretation: str


class ParallelOiAnalysis(FeedBaseModel):
    support_zone: ZoneSummary
    resistance_zone: ZoneSummary
    cross_strike_analysis: CrossStrikeAnalysis


class MarketData(FeedBaseModel):
    """Complete dashboard payload.

    Every section is required; the upstream file is regenerated as a whole
    so a missing section means a broken upload, not an optional field.
    """

    spot_price: float
    key_indicators: KeyIndicators
    market_outlook: MarketOutlook
    zones: Zones
    parallel_oi_analysis: ParallelOiAnalysis

    def all_zones(self) -> list[tuple[Zone, bool]]:
        """``(zone, is_support)`` pairs, support zones first."""
        return [(z, True) for z in self.zones.support] + [(z, False) for z in self.zones.resistance]
