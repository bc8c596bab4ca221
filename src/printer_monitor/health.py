"""
Device health orchestration.

Each poll is a short, strictly sequential pipeline:

    probe -> SNMP query -> normalize -> DeviceHealth

and always ends in a DeviceHealth record. Failures degrade the result
instead of propagating:

    unreachable          -> offline, placeholder readings, no query
    query failed         -> re-probe, "connectivity-only" result
    query ok, no data    -> online with optimistic placeholders

The two placeholder sets differ on purpose. Black 0% / UNKNOWN tray
means "we never got data"; Black 100% / OK tray means "the device
answered but had nothing decodable for that category".
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, Optional

from ._types import (
    Device,
    DeviceHealth,
    HealthStatus,
    NormalizedMetrics,
    PollMethod,
    PrinterState,
    ProbeResult,
    TonerReading,
    TrayReading,
    TrayState,
)
from .config import MetricOids, MonitorConfig, metric_oids_for
from .errors import MetricQueryError, ProbeUnreachable
from .normalizer import ResponseNormalizer
from .prober import ReachabilityProber
from .snmp_client import SNMPQueryClient

logger = logging.getLogger(__name__)


def unavailable_toners() -> list[TonerReading]:
    return [TonerReading(color="Black", level=0)]


def unavailable_trays() -> list[TrayReading]:
    return [TrayReading(label="Tray 1", state=TrayState.UNKNOWN)]


def empty_response_toners() -> list[TonerReading]:
    return [TonerReading(color="Black", level=100)]


def empty_response_trays() -> list[TrayReading]:
    return [TrayReading(label="Tray 1", state=TrayState.OK)]


class DevicePoller:
    """
    Runs the health pipeline for one device at a time.

    Holds no per-poll state, so a single instance can serve any number
    of concurrent poll_device() calls.
    """

    def __init__(
        self,
        prober: Optional[ReachabilityProber] = None,
        client: Optional[SNMPQueryClient] = None,
        oids: Optional[MetricOids] = None,
    ):
        self.prober = prober or ReachabilityProber()
        self.client = client or SNMPQueryClient()
        self.oids = oids or MetricOids()
        self.normalizer = ResponseNormalizer(self.oids)

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "DevicePoller":
        return cls(
            prober=ReachabilityProber(
                ports=config.probe_ports,
                timeout=config.probe_timeout_seconds,
            ),
            client=SNMPQueryClient(
                timeout=config.query_timeout_seconds,
                retries=config.query_retries,
                port=config.snmp_port,
                version=config.snmp_version,
            ),
            oids=config.oids,
        )

    def worst_case_seconds(self) -> float:
        """Upper bound on poll_device() latency (degraded path included)."""
        return 2 * self.prober.worst_case_seconds + self.client.worst_case_seconds

    async def poll_device(self, device: Device) -> DeviceHealth:
        """Poll one device. Never raises; failures yield a degraded record."""
        started = time.monotonic()
        logger.info(f"Checking printer: {device.name} ({device.address})")

        probe = await self.prober.probe(device.address)
        if not probe.reachable:
            error = ProbeUnreachable(device.address, self.prober.ports)
            logger.warning(f"Printer {device.name} is not reachable")
            return self._unreachable(device, started, str(error))

        logger.info(f"Printer {device.name} is reachable on port {probe.port}")

        try:
            raw = await self.client.query(
                device.address,
                device.community,
                metric_oids_for(device, self.oids),
            )
        except MetricQueryError as e:
            logger.warning(f"SNMP query failed for {device.name}: {e}")
            return await self._connectivity_only(device, started, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error querying {device.name}")
            return await self._connectivity_only(device, started, str(e) or type(e).__name__)

        metrics = self.normalizer.normalize(raw)
        logger.info(
            f"Successfully queried {device.name}: "
            f"{len(metrics.toners)} toner(s), {len(metrics.trays)} tray(s), "
            f"state={metrics.printer_state.value}"
        )
        return self._full_protocol(device, probe, metrics, started)

    async def _connectivity_only(
        self,
        device: Device,
        started: float,
        error: str,
    ) -> DeviceHealth:
        # Fresh probe: the device may have gone away while we queried it
        probe = await self.prober.probe(device.address)
        status = HealthStatus.ONLINE if probe.reachable else HealthStatus.OFFLINE
        return DeviceHealth(
            name=device.name,
            address=device.address,
            location=device.location,
            status=status,
            reachable=probe.reachable,
            reachable_port=probe.port,
            toners=unavailable_toners(),
            trays=unavailable_trays(),
            method=PollMethod.CONNECTIVITY_ONLY,
            printer_state=PrinterState.UNKNOWN,
            response_time_ms=_elapsed_ms(started),
            error=error,
        )

    def _unreachable(self, device: Device, started: float, error: str) -> DeviceHealth:
        return DeviceHealth(
            name=device.name,
            address=device.address,
            location=device.location,
            status=HealthStatus.OFFLINE,
            reachable=False,
            reachable_port=None,
            toners=unavailable_toners(),
            trays=unavailable_trays(),
            method=PollMethod.UNREACHABLE,
            printer_state=PrinterState.UNKNOWN,
            response_time_ms=_elapsed_ms(started),
            error=error,
        )

    def _full_protocol(
        self,
        device: Device,
        probe: ProbeResult,
        metrics: NormalizedMetrics,
        started: float,
    ) -> DeviceHealth:
        return DeviceHealth(
            name=device.name,
            address=device.address,
            location=device.location,
            status=HealthStatus.ONLINE,
            reachable=True,
            reachable_port=probe.port,
            toners=metrics.toners or empty_response_toners(),
            trays=metrics.trays or empty_response_trays(),
            method=PollMethod.FULL_PROTOCOL,
            printer_state=metrics.printer_state,
            page_count=metrics.page_count,
            response_time_ms=_elapsed_ms(started),
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def poll_device(device: Device, poller: Optional[DevicePoller] = None) -> DeviceHealth:
    """Poll a single device with default settings unless a poller is given."""
    return await (poller or DevicePoller()).poll_device(device)


async def poll_fleet(devices: Iterable[Device], poller: DevicePoller) -> list[DeviceHealth]:
    """Poll all devices concurrently; results keep roster order."""
    return list(await asyncio.gather(*(poller.poll_device(d) for d in devices)))


def summarize(results: Iterable[DeviceHealth]) -> dict[str, int]:
    results = list(results)
    online = sum(1 for r in results if r.online)
    return {
        "count": len(results),
        "online": online,
        "offline": len(results) - online,
    }
