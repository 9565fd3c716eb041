"""Detect zones whose open-interest storage is intensifying between refreshes."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from pyfeedsync.models.market import MarketData
from pyfeedsync.presentation import StorageLabel, storage_label, zone_intensity

_logger = logging.getLogger(__name__)

#: Intensity (OI change %) above which a strong zone is worth an alert.
ALERT_INTENSITY_PCT = 70.0


class IntensityAlert(BaseModel):
    model_config = ConfigDict(frozen=True)

    strike: float
    is_support: bool
    label: StorageLabel
    intensity: float
    previous: float

    @property
    def title(self) -> str:
        return "Storage Intensifying"

    @property
    def message(self) -> str:
        return f"{self.strike:g} -> {self.label.text} ({self.intensity:.1f}%)"


class IntensityTracker:
    """Remembers the last intensity per strike and reports rising strong zones.

    Feed it every new :class:`MarketData` (e.g. from a sync engine listener).
    A strike seen for the first time compares against ``0``.
    """

    def __init__(self, threshold: float = ALERT_INTENSITY_PCT) -> None:
        self._threshold = threshold
        self._previous: dict[float, float] = {}

    def observe(self, market: MarketData) -> list[IntensityAlert]:
        alerts: list[IntensityAlert] = []
        for zone, is_support in market.all_zones():
            intensity = zone_intensity(zone, is_support)
            previous = self._previous.get(zone.strike, 0.0)
            label = storage_label(zone, is_support)
            if intensity > self._threshold and intensity > previous and label.is_strong:
                alerts.append(
                    IntensityAlert(
                        strike=zone.strike,
                        is_support=is_support,
                        label=label,
                        intensity=intensity,
                        previous=previous,
                    )
                )
            self._previous[zone.strike] = intensity
        if alerts:
            _logger.debug("%d intensity alert(s): %s", len(alerts), [a.strike for a in alerts])
        return alerts

    def reset(self) -> None:
        self._previous.clear()
