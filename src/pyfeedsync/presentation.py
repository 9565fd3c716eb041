"""Display-level facts derived from decoded resources.

Everything here is pure: identical input always yields identical output.
"""

from __future__ import annotations

import math
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pyfeedsync.models.market import Zone


class ChangeStrength(StrEnum):
    """Ordered strength labels, strongest positive first."""

    VERY_BULLISH = "very_bullish"
    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"
    VERY_BEARISH = "very_bearish"


class StorageLabel(StrEnum):
    STRONG_BULLISH = "strong_bullish"
    BULLISH = "bullish"
    RANGE = "range"
    BEARISH = "bearish"
    STRONG_BEARISH = "strong_bearish"

    @property
    def is_strong(self) -> bool:
        return self in (StorageLabel.STRONG_BULLISH, StorageLabel.STRONG_BEARISH)

    @property
    def text(self) -> str:
        return _STORAGE_TEXT[self]


_STORAGE_TEXT: dict[StorageLabel, str] = {
    StorageLabel.STRONG_BULLISH: "STRONG BULLISH STORAGE",
    StorageLabel.BULLISH: "STORING BULLISH",
    StorageLabel.RANGE: "STORING RANGE",
    StorageLabel.BEARISH: "STORING BEARISH",
    StorageLabel.STRONG_BEARISH: "STRONG BEARISH STORAGE",
}

VERY_HIGH_CHANGE_PCT = 70.0
HIGH_CHANGE_PCT = 10.0

_TAGS: dict[ChangeStrength, str] = {
    ChangeStrength.VERY_BULLISH: "green-strong",
    ChangeStrength.BULLISH: "green",
    ChangeStrength.NEUTRAL: "yellow",
    ChangeStrength.BEARISH: "red",
    ChangeStrength.VERY_BEARISH: "red-strong",
}


class DerivedIndicator(BaseModel):
    """Classification of a percentage change for display."""

    model_config = ConfigDict(frozen=True)

    label: ChangeStrength
    strength_score: float = Field(ge=0.0, le=1.0, description="|change| scaled to [0, 1], saturating at 100 %")
    tag: str


def classify_change(change_pct: float) -> DerivedIndicator:
    """Map a percentage change onto :class:`ChangeStrength`.

    Bands: ``>= 70`` very bullish, ``>= 10`` bullish, ``> -10`` neutral,
    ``> -70`` bearish, otherwise very bearish.  Infinite values fall into the
    outer bands.

    Raises :class:`ValueError` for NaN, which has no position on the scale.
    """
    value = float(change_pct)
    if math.isnan(value):
        raise ValueError("change_pct must not be NaN")

    if value >= VERY_HIGH_CHANGE_PCT:
        label = ChangeStrength.VERY_BULLISH
    elif value >= HIGH_CHANGE_PCT:
        label = ChangeStrength.BULLISH
    elif value > -HIGH_CHANGE_PCT:
        label = ChangeStrength.NEUTRAL
    elif value > -VERY_HIGH_CHANGE_PCT:
        label = ChangeStrength.BEARISH
    else:
        label = ChangeStrength.VERY_BEARISH

    score = min(abs(value), 100.0) / 100.0
    return DerivedIndicator(label=label, strength_score=round(score, 4), tag=_TAGS[label])


_SUPPORT_CODES: dict[str, StorageLabel] = {
    "STRONG_BUY": StorageLabel.STRONG_BULLISH,
    "HEAVY_SUPPORT": StorageLabel.BULLISH,
    "LONG_UNWINDING": StorageLabel.BEARISH,
}
_RESISTANCE_CODES: dict[str, StorageLabel] = {
    "STRONG_SELL": StorageLabel.STRONG_BEARISH,
    "HEAVY_RESISTANCE": StorageLabel.BEARISH,
    "SHORT_COVERING": StorageLabel.BULLISH,
}


def storage_label(zone: Zone, is_support: bool) -> StorageLabel:
    """Label a zone from its interpretation code; unknown codes are ``RANGE``."""
    codes = _SUPPORT_CODES if is_support else _RESISTANCE_CODES
    return codes.get(zone.interpretation_code, StorageLabel.RANGE)


def zone_intensity(zone: Zone, is_support: bool) -> float:
    """OI change % that drives a zone: puts for support, calls for resistance."""
    return zone.put_oi_change_pct if is_support else zone.call_oi_change_pct


def format_compact(value: float) -> str:
    """Abbreviate large counts: ``123456 -> "1.23L"``, ``4500 -> "4.5K"``."""
    if abs(value) >= 100_000:
        return f"{value / 100_000:.2f}L"
    if abs(value) >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:.0f}"
