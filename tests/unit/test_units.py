"""Sanity-тест для модуля units: адреса, ставки, суммы."""

import pytest

from src.core.domain.units import (
    MAX_UINT,
    ZERO_ADDRESS,
    is_zero_address,
    normalize_address,
    validate_amount,
    validate_bps,
    validate_fee_pair,
)


class TestAddresses:
    def test_normalize_lowercases(self):
        assert normalize_address("0x" + "AbCd" * 10) == "0x" + "abcd" * 10

    @pytest.mark.parametrize("bad", ["", "0x1234", "ab" * 20, "0x" + "zz" * 20, None])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            normalize_address(bad)

    def test_zero_address(self):
        assert is_zero_address(ZERO_ADDRESS)
        assert not is_zero_address("0x" + "00" * 19 + "01")


class TestValidation:
    def test_bps_bounds(self):
        validate_bps(0)
        validate_bps(10_000)
        with pytest.raises(ValueError):
            validate_bps(-1)
        with pytest.raises(ValueError):
            validate_bps(10_001)

    def test_fee_pair(self):
        validate_fee_pair(9_998, 1, "exit")
        with pytest.raises(ValueError, match="performance"):
            validate_fee_pair(9_999, 1, "performance")

    def test_amount(self):
        validate_amount(0)
        validate_amount(MAX_UINT)
        with pytest.raises(ValueError):
            validate_amount(-1)
        with pytest.raises(ValueError):
            validate_amount(MAX_UINT + 1)
