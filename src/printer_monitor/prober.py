"""
TCP reachability probing.

A printer counts as reachable as soon as any port from a fixed,
prioritized list completes a TCP handshake. Errors and timeouts on a
port are equivalent: the prober just moves on to the next one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from ._types import ProbeResult

logger = logging.getLogger(__name__)


# Checked in order; the first port that answers wins
PRINTER_PORTS: tuple[int, ...] = (
    9100,   # Raw/JetDirect printing
    515,    # LPD spooler
    631,    # IPP
    80,     # Web management
    443,    # Web management (TLS)
    9220,   # HP web services
)

DEFAULT_PROBE_TIMEOUT = 2.0


async def probe_port(host: str, port: int, timeout: float = DEFAULT_PROBE_TIMEOUT) -> bool:
    """Return True if a TCP handshake to host:port completes within timeout."""
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=timeout,
        )
    except (OSError, ValueError, asyncio.TimeoutError) as e:
        # ValueError covers UnicodeError from IDNA-encoding a bad host name
        logger.debug(f"Probe {host}:{port} failed: {e!r}")
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        # Peer reset during close; the handshake already succeeded
        pass
    return True


class ReachabilityProber:
    """Tests a device address against the candidate port list."""

    def __init__(
        self,
        ports: Iterable[int] = PRINTER_PORTS,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
    ):
        self.ports = tuple(ports)
        self.timeout = timeout

    @property
    def worst_case_seconds(self) -> float:
        return len(self.ports) * self.timeout

    async def probe(self, address: str) -> ProbeResult:
        for port in self.ports:
            if await probe_port(address, port, self.timeout):
                logger.debug(f"{address} reachable on port {port}")
                return ProbeResult(reachable=True, port=port)

        logger.debug(f"{address} not reachable on any of {list(self.ports)}")
        return ProbeResult(reachable=False, port=None)
