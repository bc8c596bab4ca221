"""
Normalization of raw SNMP values into typed printer readings.

Identifiers are routed by matching them against a small, closed set of
printer-MIB families. Anything that does not match a known family, or
whose value is not numeric, is ignored rather than treated as an error.
"""

from __future__ import annotations

import logging
import math
import re
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from ._types import (
    NormalizedMetrics,
    Number,
    PrinterState,
    RawMetric,
    TonerReading,
    TrayReading,
    TrayState,
)
from .config import MetricOids

logger = logging.getLogger(__name__)


class MetricFamily(str, Enum):
    """Indexed identifier families recognised by the normalizer."""
    TONER_LEVEL = "toner_level"
    TRAY_STATUS = "tray_status"


# prtMarkerSuppliesLevel.1.<n> and prtInputStatus.1.<n>
_FAMILY_PATTERNS: tuple[tuple[MetricFamily, re.Pattern[str]], ...] = (
    (MetricFamily.TONER_LEVEL, re.compile(r"^\.?1\.3\.6\.1\.2\.1\.43\.11\.1\.1\.9\.1\.(\d+)$")),
    (MetricFamily.TRAY_STATUS, re.compile(r"^\.?1\.3\.6\.1\.2\.1\.43\.8\.2\.1\.12\.1\.(\d+)$")),
)

# Supply index (1-based) -> color name
TONER_COLORS: tuple[str, ...] = ("Black", "Cyan", "Magenta", "Yellow")

TRAY_STATES: Mapping[int, TrayState] = MappingProxyType({
    1: TrayState.OK,
    2: TrayState.LOW,
    3: TrayState.EMPTY,
    4: TrayState.OPEN,
    5: TrayState.JAMMED,
})

PRINTER_STATES: Mapping[int, PrinterState] = MappingProxyType({
    1: PrinterState.OTHER,
    2: PrinterState.UNKNOWN,
    3: PrinterState.IDLE,
    4: PrinterState.PRINTING,
    5: PrinterState.WARMUP,
})

TONER_MIN = 0
TONER_MAX = 100


def classify_oid(oid: str) -> Optional[tuple[MetricFamily, int]]:
    """Return (family, index) for an indexed identifier, or None."""
    for family, pattern in _FAMILY_PATTERNS:
        match = pattern.match(oid)
        if match:
            return family, int(match.group(1))
    return None


def as_number(value: object) -> Optional[Number]:
    """
    Coerce a decoded SNMP value to a number.

    Numeric strings are accepted; booleans, NaN, infinities and anything
    else non-numeric yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        if number.is_integer():
            number = int(number)
    else:
        return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number


def clamp_level(value: Number) -> int:
    return min(TONER_MAX, max(TONER_MIN, int(value)))


def tray_state(value: Number) -> TrayState:
    if isinstance(value, float) and not value.is_integer():
        return TrayState.UNKNOWN
    return TRAY_STATES.get(int(value), TrayState.UNKNOWN)


def printer_state(value: Number) -> PrinterState:
    if isinstance(value, float) and not value.is_integer():
        return PrinterState.UNKNOWN
    return PRINTER_STATES.get(int(value), PrinterState.UNKNOWN)


class ResponseNormalizer:
    """Maps a batch of RawMetric records to NormalizedMetrics."""

    def __init__(self, oids: Optional[MetricOids] = None):
        self.oids = oids or MetricOids()

    def normalize(self, metrics: Iterable[RawMetric]) -> NormalizedMetrics:
        toners: dict[int, TonerReading] = {}
        trays: dict[int, TrayReading] = {}
        result = NormalizedMetrics()

        for metric in metrics:
            value = as_number(metric.value)
            if value is None:
                if metric.value is not None:
                    logger.debug(f"Skipping non-numeric value for {metric.oid}: {metric.value!r}")
                continue

            oid = metric.oid.lstrip(".")

            if oid == self.oids.printer_status:
                result.printer_state = printer_state(value)
                continue
            if oid == self.oids.page_count:
                result.page_count = int(value)
                continue

            classified = classify_oid(oid)
            if classified is None:
                logger.debug(f"Ignoring unrecognised identifier {metric.oid}")
                continue

            family, index = classified
            if family == MetricFamily.TONER_LEVEL:
                if 1 <= index <= len(TONER_COLORS):
                    toners[index] = TonerReading(
                        color=TONER_COLORS[index - 1],
                        level=clamp_level(value),
                        raw_value=value,
                    )
            elif family == MetricFamily.TRAY_STATUS:
                trays[index] = TrayReading(
                    label=f"Tray {index}",
                    state=tray_state(value),
                    raw_value=value,
                )

        result.toners = [toners[i] for i in sorted(toners)]
        result.trays = [trays[i] for i in sorted(trays)]
        return result


def normalize(metrics: Iterable[RawMetric], oids: Optional[MetricOids] = None) -> NormalizedMetrics:
    """Convenience wrapper around ResponseNormalizer."""
    return ResponseNormalizer(oids).normalize(metrics)
