"""Tests for printer monitor type definitions."""

import dataclasses
from datetime import datetime, timezone

import pytest

from printer_monitor._types import (
    Device,
    DeviceCapability,
    DeviceHealth,
    HealthStatus,
    PollMethod,
    PrinterState,
    TonerReading,
    TrayReading,
    TrayState,
)


class TestDevice:
    """Tests for Device dataclass."""

    def test_device_defaults(self):
        """Device should default to a monochrome printer with public community."""
        device = Device(name="lab-01", address="10.0.0.5")

        assert device.community == "public"
        assert device.capability == DeviceCapability.MONOCHROME
        assert device.is_color is False
        assert device.location == ""

    def test_color_device(self):
        device = Device(name="lab-02", address="10.0.0.6", capability=DeviceCapability.COLOR)
        assert device.is_color is True

    def test_device_is_immutable(self):
        """Devices are shared across concurrent polls and must not change."""
        device = Device(name="lab-01", address="10.0.0.5")

        with pytest.raises(dataclasses.FrozenInstanceError):
            device.address = "10.0.0.99"


class TestDeviceHealthSerialization:
    """Tests for DeviceHealth.to_dict()."""

    def _health(self, **overrides):
        values = dict(
            name="lab-01",
            address="10.0.0.5",
            location="Library 3rd Floor",
            status=HealthStatus.ONLINE,
            reachable=True,
            reachable_port=9100,
            toners=[TonerReading(color="Black", level=55, raw_value=55)],
            trays=[TrayReading(label="Tray 1", state=TrayState.LOW, raw_value=2)],
            method=PollMethod.FULL_PROTOCOL,
            printer_state=PrinterState.IDLE,
            page_count=1200,
            response_time_ms=87,
            timestamp=datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc),
        )
        values.update(overrides)
        return DeviceHealth(**values)

    def test_to_dict_shape(self):
        data = self._health().to_dict()

        assert data == {
            "name": "lab-01",
            "ip": "10.0.0.5",
            "location": "Library 3rd Floor",
            "status": "online",
            "reachable": True,
            "reachablePort": 9100,
            "toners": [{"color": "Black", "level": 55, "rawValue": 55}],
            "trays": [{"name": "Tray 1", "status": "LOW", "rawValue": 2}],
            "printerStatus": "IDLE",
            "pageCount": 1200,
            "responseTime": 87,
            "timestamp": "2026-01-10T12:00:00+00:00",
            "method": "full-protocol",
        }

    def test_error_included_only_when_set(self):
        health = self._health(
            status=HealthStatus.OFFLINE,
            method=PollMethod.UNREACHABLE,
            error="Printer not reachable on any common port",
        )

        data = health.to_dict()

        assert data["error"] == "Printer not reachable on any common port"
        assert "error" not in self._health().to_dict()

    def test_placeholder_readings_have_no_raw_value(self):
        health = self._health(
            toners=[TonerReading(color="Black", level=0)],
            trays=[TrayReading(label="Tray 1", state=TrayState.UNKNOWN)],
        )

        data = health.to_dict()

        assert data["toners"] == [{"color": "Black", "level": 0}]
        assert data["trays"] == [{"name": "Tray 1", "status": "UNKNOWN"}]

    def test_online_property(self):
        assert self._health().online is True
        assert self._health(status=HealthStatus.OFFLINE).online is False
