"""
Printer Monitor - on-demand health snapshots for a fleet of network printers.

Each poll probes the printer's well-known TCP ports, queries toner, tray,
state and page-count counters over SNMP, and merges the outcome into a
single DeviceHealth record. Polls are stateless: nothing is persisted.

Architecture:
    prober       - TCP reachability gate
    snmp_client  - batched SNMP GET
    normalizer   - raw values -> typed readings
    health       - per-device pipeline and fallback policy
    service      - aiohttp API and process lifecycle
"""

__version__ = "2.0.0"

from ._types import (
    Device,
    DeviceCapability,
    DeviceHealth,
    HealthStatus,
    NormalizedMetrics,
    PollMethod,
    PrinterState,
    ProbeResult,
    RawMetric,
    TonerReading,
    TrayReading,
    TrayState,
)
from .errors import (
    PollError,
    ProbeUnreachable,
    MetricQueryError,
    QueryTimeout,
    QueryRejected,
    NoValidData,
)
from .health import DevicePoller, poll_device, poll_fleet

__all__ = [
    "__version__",
    "Device",
    "DeviceCapability",
    "DeviceHealth",
    "HealthStatus",
    "NormalizedMetrics",
    "PollMethod",
    "PrinterState",
    "ProbeResult",
    "RawMetric",
    "TonerReading",
    "TrayReading",
    "TrayState",
    "PollError",
    "ProbeUnreachable",
    "MetricQueryError",
    "QueryTimeout",
    "QueryRejected",
    "NoValidData",
    "DevicePoller",
    "poll_device",
    "poll_fleet",
]
