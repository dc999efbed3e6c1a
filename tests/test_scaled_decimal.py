import struct
from decimal import Decimal

import pytest

from errors import InvalidArgumentError
from scaled_decimal import MAX_DECIMAL_SCALE, ScaledDecimal


def test_words_put_flags_first():
    value = ScaledDecimal(negative=True, scale=3, magnitude=(5 << 64) | (6 << 32) | 7)
    assert value.to_words() == (0x80030000, 7, 6, 5)
    assert ScaledDecimal.from_words(value.to_words()) == value


def test_bytes_are_four_little_endian_words():
    value = ScaledDecimal(negative=False, scale=2, magnitude=12345)
    data = value.to_bytes()
    assert len(data) == 16
    assert data == struct.pack("<4I", 0x00020000, 12345, 0, 0)
    assert ScaledDecimal.from_bytes(data) == value


def test_decimal_interop():
    for text in ["0", "-0", "1.5", "-1234.5678", "79228162514264337593543950335", "1E+3"]:
        scaled = ScaledDecimal.from_decimal(Decimal(text))
        assert scaled.to_decimal() == Decimal(text)
    assert ScaledDecimal.from_decimal(Decimal("-0")).negative is True
    assert ScaledDecimal.from_decimal(Decimal("1E+3")) == ScaledDecimal(False, 0, 1000)
    assert str(ScaledDecimal(True, 2, 150)) == "-1.50"


def test_excess_fraction_digits_round_half_even():
    value = ScaledDecimal.from_decimal(Decimal("0." + "0" * 27 + "25"))
    assert value.scale == MAX_DECIMAL_SCALE
    assert value.magnitude == 2


@pytest.mark.parametrize("bad", [Decimal("NaN"), Decimal("Infinity"), Decimal("7.93E+28")])
def test_unrepresentable_decimals(bad):
    with pytest.raises(InvalidArgumentError):
        _ = ScaledDecimal.from_decimal(bad)


def test_field_validation():
    with pytest.raises(InvalidArgumentError):
        _ = ScaledDecimal(False, 29, 1)
    with pytest.raises(InvalidArgumentError):
        _ = ScaledDecimal(False, 0, 1 << 96)


@pytest.mark.parametrize("flags", [0x00000001, 0x001D0000, 0x01000000])
def test_invalid_flags_word(flags):
    with pytest.raises(InvalidArgumentError):
        _ = ScaledDecimal.from_words((flags, 0, 0, 0))


def test_from_bytes_guards_length():
    with pytest.raises(InvalidArgumentError):
        _ = ScaledDecimal.from_bytes(b"\x00" * 15)


@pytest.mark.parametrize("text", ["1E+999999999", "-9E+29", "1" * 45 + "." + "1" * 30, "1" * 30])
def test_oversized_decimals_fail_fast(text):
    with pytest.raises(InvalidArgumentError):
        _ = ScaledDecimal.from_decimal(Decimal(text))


def test_zero_with_extreme_exponent():
    assert ScaledDecimal.from_decimal(Decimal("0E+999999999")) == ScaledDecimal(False, 0, 0)
    assert ScaledDecimal.from_decimal(Decimal("-0E-50")) == ScaledDecimal(True, MAX_DECIMAL_SCALE, 0)
    assert ScaledDecimal.from_decimal(Decimal("0.00")).scale == 2


def test_largest_integer_part_still_converts():
    value = ScaledDecimal.from_decimal(Decimal("7.9E+28"))
    assert value == ScaledDecimal(False, 0, 79 * 10 ** 27)
