"""
Type definitions for the printer monitor.

These dataclasses define the domain model for a single health poll:
the configured device, the intermediate probe/query records, and the
unified DeviceHealth snapshot returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


Number = Union[int, float]


def now_utc() -> datetime:
    """Get current UTC timestamp (replaces deprecated datetime.utcnow())."""
    return datetime.now(timezone.utc)


class DeviceCapability(str, Enum):
    """What a printer can print, which decides the toner set queried."""
    MONOCHROME = "monochrome"
    COLOR = "color"


class TrayState(str, Enum):
    """Paper tray state (printer MIB input status, simplified)."""
    OK = "OK"
    LOW = "LOW"
    EMPTY = "EMPTY"
    OPEN = "OPEN"
    JAMMED = "JAMMED"
    UNKNOWN = "UNKNOWN"


class PrinterState(str, Enum):
    """hrPrinterStatus values."""
    OTHER = "OTHER"
    UNKNOWN = "UNKNOWN"
    IDLE = "IDLE"
    PRINTING = "PRINTING"
    WARMUP = "WARMUP"


class HealthStatus(str, Enum):
    """Overall device status reported to callers."""
    ONLINE = "online"
    OFFLINE = "offline"


class PollMethod(str, Enum):
    """How the data in a DeviceHealth record was obtained."""
    FULL_PROTOCOL = "full-protocol"
    CONNECTIVITY_ONLY = "connectivity-only"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class Device:
    """
    A printer from the configured roster.

    Read-only: the same instance may be handed to many concurrent polls.
    """
    name: str
    address: str
    community: str = "public"
    capability: DeviceCapability = DeviceCapability.MONOCHROME
    location: str = ""
    model: Optional[str] = None

    @property
    def is_color(self) -> bool:
        return self.capability == DeviceCapability.COLOR


@dataclass
class ProbeResult:
    """Outcome of a reachability probe."""
    reachable: bool
    port: Optional[int] = None


@dataclass
class RawMetric:
    """One decoded SNMP variable binding."""
    oid: str
    value: Optional[Union[Number, str]] = None


@dataclass
class TonerReading:
    color: str
    level: int
    raw_value: Optional[Number] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"color": self.color, "level": self.level}
        if self.raw_value is not None:
            data["rawValue"] = self.raw_value
        return data


@dataclass
class TrayReading:
    label: str
    state: TrayState
    raw_value: Optional[Number] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.label, "status": self.state.value}
        if self.raw_value is not None:
            data["rawValue"] = self.raw_value
        return data


@dataclass
class NormalizedMetrics:
    """Typed readings produced from one batch of raw metrics."""
    toners: list[TonerReading] = field(default_factory=list)
    trays: list[TrayReading] = field(default_factory=list)
    printer_state: PrinterState = PrinterState.UNKNOWN
    page_count: Optional[int] = None


@dataclass
class DeviceHealth:
    """
    Health snapshot for one device, produced fresh on every poll.

    toners and trays are never empty: placeholder readings are
    substituted when nothing real could be decoded.
    """
    name: str
    address: str
    location: str
    status: HealthStatus
    reachable: bool
    reachable_port: Optional[int]
    toners: list[TonerReading]
    trays: list[TrayReading]
    method: PollMethod
    printer_state: PrinterState = PrinterState.UNKNOWN
    page_count: Optional[int] = None
    response_time_ms: int = 0
    timestamp: datetime = field(default_factory=now_utc)
    error: Optional[str] = None

    @property
    def online(self) -> bool:
        return self.status == HealthStatus.ONLINE

    def to_dict(self) -> dict[str, Any]:
        """Render the JSON shape served by the HTTP API."""
        data: dict[str, Any] = {
            "name": self.name,
            "ip": self.address,
            "location": self.location,
            "status": self.status.value,
            "reachable": self.reachable,
            "reachablePort": self.reachable_port,
            "toners": [t.to_dict() for t in self.toners],
            "trays": [t.to_dict() for t in self.trays],
            "printerStatus": self.printer_state.value,
            "pageCount": self.page_count,
            "responseTime": self.response_time_ms,
            "timestamp": self.timestamp.isoformat(),
            "method": self.method.value,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
