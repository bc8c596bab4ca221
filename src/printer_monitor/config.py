"""
Printer monitor configuration.

Holds the printer roster, the SNMP identifiers that are queried, and the
timeouts that bound a single poll. Loaded from a YAML file or from
environment variables; the roster itself always comes from YAML.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ._types import Device, DeviceCapability
from .prober import DEFAULT_PROBE_TIMEOUT, PRINTER_PORTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricOids:
    """Printer-MIB / Host-Resources-MIB identifiers queried on each poll."""

    # Toner levels (prtMarkerSuppliesLevel)
    toner_black: str = "1.3.6.1.2.1.43.11.1.1.9.1.1"
    toner_cyan: str = "1.3.6.1.2.1.43.11.1.1.9.1.2"
    toner_magenta: str = "1.3.6.1.2.1.43.11.1.1.9.1.3"
    toner_yellow: str = "1.3.6.1.2.1.43.11.1.1.9.1.4"

    # Tray status (prtInputStatus)
    tray_1_status: str = "1.3.6.1.2.1.43.8.2.1.12.1.1"
    tray_2_status: str = "1.3.6.1.2.1.43.8.2.1.12.1.2"
    tray_3_status: str = "1.3.6.1.2.1.43.8.2.1.12.1.3"

    # hrPrinterStatus
    printer_status: str = "1.3.6.1.2.1.25.3.5.1.1.1"

    # prtMarkerLifeCount
    page_count: str = "1.3.6.1.2.1.43.10.2.1.4.1.1"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetricOids":
        """Override individual identifiers; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown OID names: {sorted(unknown)}")
        return replace(cls(), **{k: str(v) for k, v in data.items()})


def metric_oids_for(device: Device, oids: MetricOids) -> list[str]:
    """Identifiers to request for a device, based on its capability."""
    requested = [
        oids.toner_black,
        oids.tray_1_status,
        oids.tray_2_status,
        oids.printer_status,
        oids.page_count,
    ]
    if device.is_color:
        requested.extend([oids.toner_cyan, oids.toner_magenta, oids.toner_yellow])
    return requested


def is_log_level(name: str) -> bool:
    """True if name is a standard logging level (case-insensitive)."""
    return isinstance(logging.getLevelName(str(name).upper()), int)


class RosterEntry(BaseModel):
    """One `printers:` entry as written in the YAML file."""

    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1, alias="ip")
    community: str = "public"
    model: Optional[str] = None
    capability: Optional[DeviceCapability] = None
    location: str = ""

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("capability", mode="before")
    @classmethod
    def parse_capability(cls, v):
        if v is None or isinstance(v, DeviceCapability):
            return v
        value = str(v).strip().lower()
        if value in ("mono", "monochrome", "bw"):
            return DeviceCapability.MONOCHROME
        if value in ("color", "colour"):
            return DeviceCapability.COLOR
        raise ValueError(f"Unknown capability: {v}")

    def to_device(self) -> Device:
        capability = self.capability
        if capability is None:
            # Roster convention: color models carry "color" in the model tag
            is_color = "color" in (self.model or "").lower()
            capability = DeviceCapability.COLOR if is_color else DeviceCapability.MONOCHROME
        return Device(
            name=self.name,
            address=self.address,
            community=self.community,
            capability=capability,
            location=self.location,
            model=self.model,
        )


def load_roster(entries: list[dict[str, Any]]) -> list[Device]:
    """
    Build the device roster from raw YAML entries.

    Raises:
        ValueError: entry is invalid or a name is used twice
    """
    devices: list[Device] = []
    seen: set[str] = set()

    for index, raw in enumerate(entries or []):
        try:
            entry = RosterEntry.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid printer entry #{index + 1}: {e}") from e

        if entry.name in seen:
            raise ValueError(f"Duplicate printer name: {entry.name}")
        seen.add(entry.name)
        devices.append(entry.to_device())

    return devices


@dataclass
class MonitorConfig:
    """Printer monitor configuration."""

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 3001

    # Reachability probing
    probe_ports: list[int] = field(default_factory=lambda: list(PRINTER_PORTS))
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT

    # SNMP querying
    query_timeout_seconds: float = 8.0
    query_retries: int = 2
    snmp_port: int = 161
    snmp_version: str = "2c"  # 1 or 2c

    # Roster and identifiers
    printers: list[Device] = field(default_factory=list)
    oids: MetricOids = field(default_factory=MetricOids)

    # Dashboard assets (optional)
    static_dir: Optional[Path] = None

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "MonitorConfig":
        """Load configuration from environment variables."""
        if printers_file := os.getenv("PRINTERS_FILE"):
            config = cls.from_yaml(Path(printers_file))
        else:
            config = cls()

        config.api_host = os.getenv("API_HOST", config.api_host)
        config.api_port = int(os.getenv("API_PORT", os.getenv("PORT", str(config.api_port))))

        config.probe_timeout_seconds = float(
            os.getenv("PROBE_TIMEOUT", str(config.probe_timeout_seconds))
        )
        config.query_timeout_seconds = float(
            os.getenv("QUERY_TIMEOUT", str(config.query_timeout_seconds))
        )
        config.query_retries = int(os.getenv("QUERY_RETRIES", str(config.query_retries)))
        config.snmp_port = int(os.getenv("SNMP_PORT", str(config.snmp_port)))
        config.snmp_version = os.getenv("SNMP_VERSION", config.snmp_version)

        if static_dir := os.getenv("STATIC_DIR"):
            config.static_dir = Path(static_dir)

        config.log_level = os.getenv("LOG_LEVEL", config.log_level)

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "MonitorConfig":
        """Load configuration (including the roster) from a YAML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}, using defaults")
            return cls()

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping at the top of {path}")

        config = cls()

        a = _section(data, "api")
        config.api_host = a.get("host", config.api_host)
        config.api_port = int(a.get("port", config.api_port))

        p = _section(data, "probe")
        if "ports" in p:
            config.probe_ports = [int(port) for port in p["ports"]]
        config.probe_timeout_seconds = float(p.get("timeout", config.probe_timeout_seconds))

        s = _section(data, "snmp")
        config.query_timeout_seconds = float(s.get("timeout", config.query_timeout_seconds))
        config.query_retries = int(s.get("retries", config.query_retries))
        config.snmp_port = int(s.get("port", config.snmp_port))
        config.snmp_version = str(s.get("version", config.snmp_version))

        if "oids" in data:
            config.oids = MetricOids.from_dict(_section(data, "oids"))

        config.printers = load_roster(data.get("printers", []))

        if static_dir := data.get("static_dir"):
            config.static_dir = Path(static_dir)

        config.log_level = str(data.get("log_level") or config.log_level)

        return config

    def get_printer(self, name: str) -> Optional[Device]:
        return next((d for d in self.printers if d.name == name), None)

    def validate(self) -> list[str]:
        """Validate configuration, returning list of errors."""
        errors = []

        if not self.printers:
            errors.append("No printers configured")

        if not self.probe_ports:
            errors.append("No probe ports configured")

        for port in [*self.probe_ports, self.snmp_port, self.api_port]:
            if not 0 < port < 65536:
                errors.append(f"Invalid port: {port}")

        if self.probe_timeout_seconds <= 0:
            errors.append(f"Invalid probe timeout: {self.probe_timeout_seconds}")

        if self.query_timeout_seconds <= 0:
            errors.append(f"Invalid query timeout: {self.query_timeout_seconds}")

        if self.query_retries < 0:
            errors.append(f"Invalid query retries: {self.query_retries}")

        if self.snmp_version not in ("1", "2c"):
            errors.append(f"Unsupported SNMP version: {self.snmp_version}")

        if self.static_dir is not None and not self.static_dir.is_dir():
            errors.append(f"Static directory not found: {self.static_dir}")

        if not is_log_level(self.log_level):
            errors.append(f"Invalid log level: {self.log_level}")

        return errors


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a top-level mapping section; missing or null means empty."""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


# Example printer_monitor.yaml:
"""
api:
  host: "0.0.0.0"
  port: 3001

probe:
  ports: [9100, 515, 631, 80, 443, 9220]
  timeout: 2.0

snmp:
  timeout: 8.0
  retries: 2
  version: "2c"

printers:
  - name: "Oneill3rdfloorprinter01.bc.edu"
    ip: "136.167.67.130"
    community: "public"
    model: "hp"
    location: "O'Neill Library 3rd Floor"
  - name: "oneill3rdfloorcolorprinter01.bc.edu"
    ip: "136.167.67.81"
    community: "public"
    model: "hp-color"
    location: "O'Neill Library 3rd Floor"

static_dir: "/srv/printer-monitor/public"
log_level: "INFO"
"""
