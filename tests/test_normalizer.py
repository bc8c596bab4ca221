"""Tests for raw SNMP value normalization."""

import random

import pytest

from printer_monitor._types import PrinterState, RawMetric, TrayState
from printer_monitor.config import MetricOids
from printer_monitor.normalizer import (
    MetricFamily,
    ResponseNormalizer,
    as_number,
    classify_oid,
    normalize,
)


OIDS = MetricOids()


@pytest.fixture
def normalizer():
    return ResponseNormalizer(OIDS)


class TestClassifyOid:
    """Tests for identifier family matching."""

    def test_toner_family(self):
        assert classify_oid("1.3.6.1.2.1.43.11.1.1.9.1.2") == (MetricFamily.TONER_LEVEL, 2)

    def test_tray_family(self):
        assert classify_oid("1.3.6.1.2.1.43.8.2.1.12.1.3") == (MetricFamily.TRAY_STATUS, 3)

    def test_leading_dot_accepted(self):
        assert classify_oid(".1.3.6.1.2.1.43.11.1.1.9.1.1") == (MetricFamily.TONER_LEVEL, 1)

    def test_unknown_identifier(self):
        assert classify_oid("1.3.6.1.2.1.1.5.0") is None

    def test_prefix_containment_is_not_a_match(self):
        """A longer identifier that merely contains the family prefix is ignored."""
        assert classify_oid("1.3.6.1.2.1.43.11.1.1.9.1.1.7") is None
        assert classify_oid("9.1.3.6.1.2.1.43.11.1.1.9.1.1") is None


class TestAsNumber:
    """Tests for numeric coercion."""

    @pytest.mark.parametrize("value,expected", [
        (42, 42),
        (12.5, 12.5),
        ("42", 42),
        (" 7 ", 7),
        ("3.5", 3.5),
    ])
    def test_numeric(self, value, expected):
        assert as_number(value) == expected

    @pytest.mark.parametrize("value", [
        None, "ready", "", True, b"\x01",
        float("nan"), float("inf"), "inf", "-inf", "nan", "1e400",
    ])
    def test_non_numeric(self, value):
        assert as_number(value) is None


class TestToners:
    """Tests for toner level readings."""

    def test_clamp_above_range(self, normalizer):
        result = normalizer.normalize([RawMetric(OIDS.toner_black, 150)])

        assert result.toners[0].level == 100
        assert result.toners[0].raw_value == 150

    def test_clamp_below_range(self, normalizer):
        """Printers report -2/-3 for 'unknown'/'some remaining'; never negative."""
        result = normalizer.normalize([RawMetric(OIDS.toner_black, -5)])

        assert result.toners[0].level == 0
        assert result.toners[0].raw_value == -5

    def test_in_range_kept(self, normalizer):
        result = normalizer.normalize([RawMetric(OIDS.toner_black, 73)])
        assert result.toners[0].level == 73

    def test_fractional_value_truncated(self, normalizer):
        result = normalizer.normalize([RawMetric(OIDS.toner_black, "42.9")])
        assert result.toners[0].level == 42

    def test_color_by_suffix(self, normalizer):
        result = normalizer.normalize([
            RawMetric(OIDS.toner_black, 10),
            RawMetric(OIDS.toner_cyan, 20),
            RawMetric(OIDS.toner_magenta, 30),
            RawMetric(OIDS.toner_yellow, 40),
        ])

        assert [(t.color, t.level) for t in result.toners] == [
            ("Black", 10),
            ("Cyan", 20),
            ("Magenta", 30),
            ("Yellow", 40),
        ]

    def test_suffix_two_is_cyan_regardless_of_order(self, normalizer):
        metrics = [
            RawMetric(OIDS.toner_yellow, 40),
            RawMetric(OIDS.tray_1_status, 1),
            RawMetric(OIDS.toner_cyan, 20),
            RawMetric(OIDS.page_count, 900),
            RawMetric(OIDS.toner_black, 10),
        ]
        rng = random.Random(1234)

        for _ in range(10):
            rng.shuffle(metrics)
            result = normalizer.normalize(metrics)
            cyan = [t for t in result.toners if t.raw_value == 20]
            assert len(cyan) == 1
            assert cyan[0].color == "Cyan"

    def test_unknown_toner_index_ignored(self, normalizer):
        result = normalizer.normalize([RawMetric("1.3.6.1.2.1.43.11.1.1.9.1.5", 50)])
        assert result.toners == []


class TestTrays:
    """Tests for tray status readings."""

    @pytest.mark.parametrize("raw,state", [
        (1, TrayState.OK),
        (2, TrayState.LOW),
        (3, TrayState.EMPTY),
        (4, TrayState.OPEN),
        (5, TrayState.JAMMED),
    ])
    def test_known_states(self, normalizer, raw, state):
        result = normalizer.normalize([RawMetric(OIDS.tray_1_status, raw)])
        assert result.trays[0].state == state

    @pytest.mark.parametrize("raw", [0, -1, 6, 99, 2**31 - 1, 2.5])
    def test_unmapped_values_are_unknown(self, normalizer, raw):
        result = normalizer.normalize([RawMetric(OIDS.tray_1_status, raw)])
        assert result.trays[0].state == TrayState.UNKNOWN

    def test_label_from_suffix(self, normalizer):
        result = normalizer.normalize([
            RawMetric(OIDS.tray_2_status, 3),
            RawMetric(OIDS.tray_1_status, 1),
        ])

        assert [(t.label, t.state) for t in result.trays] == [
            ("Tray 1", TrayState.OK),
            ("Tray 2", TrayState.EMPTY),
        ]
        assert result.trays[1].raw_value == 3


class TestScalars:
    """Tests for device state and page count."""

    def test_printer_state(self, normalizer):
        result = normalizer.normalize([RawMetric(OIDS.printer_status, 4)])
        assert result.printer_state == PrinterState.PRINTING

    def test_unmapped_printer_state(self, normalizer):
        result = normalizer.normalize([RawMetric(OIDS.printer_status, 42)])
        assert result.printer_state == PrinterState.UNKNOWN

    def test_absent_scalars_default(self, normalizer):
        result = normalizer.normalize([RawMetric(OIDS.toner_black, 50)])

        assert result.printer_state == PrinterState.UNKNOWN
        assert result.page_count is None

    def test_page_count(self, normalizer):
        result = normalizer.normalize([RawMetric(OIDS.page_count, 48210)])
        assert result.page_count == 48210

    def test_custom_identifiers_matched_exactly(self):
        """Device state and page count come from the configured identifiers."""
        oids = MetricOids(page_count="1.3.6.1.4.1.11.2.3.9.4.2.1.4.1.2.5.0")
        result = normalize(
            [
                RawMetric("1.3.6.1.4.1.11.2.3.9.4.2.1.4.1.2.5.0", 777),
                RawMetric(MetricOids().page_count, 5),
            ],
            oids,
        )

        assert result.page_count == 777


class TestSkipping:
    """Tests for tolerance of bad values."""

    def test_null_and_non_numeric_skipped(self, normalizer):
        """Bad values are dropped without aborting the rest of the batch."""
        result = normalizer.normalize([
            RawMetric(OIDS.toner_black, None),
            RawMetric(OIDS.toner_cyan, "n/a"),
            RawMetric(OIDS.tray_1_status, "jammed"),
            RawMetric(OIDS.tray_2_status, 2),
            RawMetric(OIDS.printer_status, None),
            RawMetric(OIDS.page_count, "lots"),
            RawMetric(OIDS.toner_magenta, 88),
        ])

        assert [t.color for t in result.toners] == ["Magenta"]
        assert [t.label for t in result.trays] == ["Tray 2"]
        assert result.printer_state == PrinterState.UNKNOWN
        assert result.page_count is None

    @pytest.mark.parametrize("raw", ["inf", "-inf", "1e400", "nan"])
    def test_non_finite_values_skipped(self, normalizer, raw):
        """Overflowing strings from an OctetString never reach int()."""
        result = normalizer.normalize([
            RawMetric(OIDS.toner_black, raw),
            RawMetric(OIDS.tray_1_status, raw),
            RawMetric(OIDS.printer_status, raw),
            RawMetric(OIDS.page_count, raw),
            RawMetric(OIDS.toner_cyan, 35),
        ])

        assert [t.color for t in result.toners] == ["Cyan"]
        assert result.trays == []
        assert result.printer_state == PrinterState.UNKNOWN
        assert result.page_count is None

    def test_unrecognised_identifiers_ignored(self, normalizer):
        result = normalizer.normalize([
            RawMetric("1.3.6.1.2.1.1.3.0", 123456),
            RawMetric(OIDS.toner_black, 50),
        ])

        assert len(result.toners) == 1
        assert result.trays == []

    def test_empty_input(self, normalizer):
        result = normalizer.normalize([])

        assert result.toners == []
        assert result.trays == []
        assert result.printer_state == PrinterState.UNKNOWN
        assert result.page_count is None
