"""
SNMP metric query client.

Issues a single batched GET per poll and decodes the variable bindings
into RawMetric records. A transport round-trip that comes back with
nothing but null/absent values is treated as a failure, same as a
timeout: the device answered SNMP but had no data for us.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from pyasn1.type import univ
from pysnmp.error import PySnmpError
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    get_cmd,
)
from pysnmp.proto import rfc1905

from ._types import RawMetric
from .errors import NoValidData, QueryRejected, QueryTimeout

logger = logging.getLogger(__name__)


DEFAULT_QUERY_TIMEOUT = 8.0
DEFAULT_QUERY_RETRIES = 2
SNMP_PORT = 161

# SNMP version string -> pysnmp message processing model
_MP_MODELS = {"1": 0, "2c": 1}

# Exception values returned in place of data (v2c) plus plain Null
_ABSENT_TYPES = (
    rfc1905.NoSuchObject,
    rfc1905.NoSuchInstance,
    rfc1905.EndOfMibView,
    univ.Null,
)


def decode_value(value: Any) -> Optional[int | float | str]:
    """Convert a pysnmp value into a plain Python number, string or None."""
    if value is None or isinstance(value, _ABSENT_TYPES):
        return None
    # Integer32, Counter32/64, Gauge32, TimeTicks all derive from univ.Integer
    if isinstance(value, univ.Integer):
        return int(value)
    if isinstance(value, univ.OctetString):
        return value.prettyPrint()
    if isinstance(value, (int, float, str)):
        return value
    return str(value)


class SNMPQueryClient:
    """
    Batched SNMP GET with a per-request timeout and bounded retries.

    A fresh SnmpEngine is created for every query and its dispatcher
    closed afterwards, so concurrent queries never share engine state.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
        retries: int = DEFAULT_QUERY_RETRIES,
        port: int = SNMP_PORT,
        version: str = "2c",
        engine_factory: Callable[[], SnmpEngine] = SnmpEngine,
    ):
        if version not in _MP_MODELS:
            raise ValueError(f"Unsupported SNMP version: {version}")
        self.timeout = timeout
        self.retries = retries
        self.port = port
        self.version = version
        self._engine_factory = engine_factory

    @property
    def worst_case_seconds(self) -> float:
        return self.timeout * (1 + self.retries)

    async def query(
        self,
        address: str,
        community: str,
        oids: Sequence[str],
    ) -> list[RawMetric]:
        """
        Fetch the given OIDs from a device.

        Raises:
            QueryTimeout: no response within timeout after retries
            QueryRejected: agent returned an error-status
            NoValidData: response carried no non-null values
        """
        logger.debug(f"SNMP GET {address} ({len(oids)} OIDs)")
        var_binds = await self._send(address, community, oids)

        metrics = [
            RawMetric(oid=str(name), value=decode_value(value))
            for name, value in var_binds
        ]

        if not any(m.value is not None for m in metrics):
            raise NoValidData()

        return metrics

    async def _send(
        self,
        address: str,
        community: str,
        oids: Sequence[str],
    ) -> Sequence[tuple[Any, Any]]:
        """Run one GET and return the raw (name, value) bindings."""
        engine = self._engine_factory()
        try:
            try:
                target = await UdpTransportTarget.create(
                    (address, self.port),
                    timeout=self.timeout,
                    retries=self.retries,
                )
                error_indication, error_status, error_index, var_binds = await get_cmd(
                    engine,
                    CommunityData(community, mpModel=_MP_MODELS[self.version]),
                    target,
                    ContextData(),
                    *[ObjectType(ObjectIdentity(oid)) for oid in oids],
                    lookupMib=False,
                )
            except PySnmpError as e:
                raise QueryTimeout(f"SNMP transport error for {address}: {e}") from e
        finally:
            engine.close_dispatcher()

        if error_indication:
            raise QueryTimeout(f"SNMP request to {address} failed: {error_indication}")

        if error_status:
            position = int(error_index) - 1 if error_index else -1
            offending = oids[position] if 0 <= position < len(oids) else "?"
            raise QueryRejected(
                f"SNMP error from {address}: {error_status.prettyPrint()} at {offending}"
            )

        return var_binds
