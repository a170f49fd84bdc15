"""
Tests for 8 decimal place APT precision.

    1 APT = 100,000,000 octas
"""

from decimal import Decimal

import pytest

from aethera_staking.precision import (
    APT_DECIMALS,
    OCTAS_PER_APT,
    apt_to_octas,
    format_apt,
    format_duration,
    octas_to_apt,
)


class TestPrecisionConstants:

    def test_apt_decimals(self):
        assert APT_DECIMALS == 8

    def test_octas_per_apt(self):
        assert OCTAS_PER_APT == 100_000_000


class TestConversions:

    def test_one_and_a_half_apt(self):
        assert apt_to_octas("1.5") == 150_000_000
        assert octas_to_apt(150_000_000) == Decimal("1.5")

    def test_float_input_has_no_binary_dust(self):
        # 0.29 * 1e8 in binary floating point is 28999999.999999996
        assert apt_to_octas(0.29) == 29_000_000

    def test_sub_octa_dust_truncated(self):
        assert apt_to_octas("0.000000019") == 1

    @pytest.mark.parametrize("apt", ["0", "1", "1.5", "0.00000001", "123456.78901234", "21000000"])
    def test_round_trip_within_one_octa(self, apt):
        octas = apt_to_octas(apt)
        assert abs(apt_to_octas(octas_to_apt(octas)) - octas) <= 1
        assert abs(octas_to_apt(octas) - Decimal(apt)) <= Decimal("0.00000001")

    def test_octas_from_string(self):
        assert octas_to_apt("250000000") == Decimal("2.5")

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            apt_to_octas("ten")
        with pytest.raises(ValueError):
            apt_to_octas("inf")


class TestFormatting:

    def test_format_apt_eight_places(self):
        assert format_apt(1) == "0.00000001"
        assert format_apt("150000000") == "1.50000000"
        assert format_apt(0) == "0.00000000"

    @pytest.mark.parametrize("seconds,label", [
        (0, "Unlocked"),
        (-5, "Unlocked"),
        (59, "0m"),
        (90, "1m"),
        (3_660, "1h 1m"),
        (90_000, "1d 1h"),
        (7 * 86_400, "7d 0h"),
    ])
    def test_format_duration(self, seconds, label):
        assert format_duration(seconds) == label
