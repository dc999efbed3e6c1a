"""Stepped ranges over floating point numbers and characters.

Each range is a lazy, restartable iterable with an exclusive end. Its
length is known up front from the closed form
``ceil(|end - start| / |step|)``, computed with exact rational arithmetic,
and iteration stops after exactly that many elements even where float
rounding would absorb the step.
"""

import logging
import math
import struct
from fractions import Fraction
from typing import Iterator

from errors import InvalidArgumentError
from primitives import CHAR_MAX

_logger = logging.getLogger(__name__)


class FloatFormat:
    """IEEE 754 binary format used to round range arguments and elements.

    :ivar name: Human readable format name.
    :type name: str
    :ivar value_struct: Layout of the float itself.
    :type value_struct: struct.Struct
    :ivar bits_struct: Unsigned integer layout of the same size.
    :type bits_struct: struct.Struct
    """

    def __init__(self, name: str, value_fmt: str, bits_fmt: str):
        self.name = name
        self.value_struct = struct.Struct(value_fmt)
        self.bits_struct = struct.Struct(bits_fmt)

    @property
    def epsilon(self) -> float:
        """Smallest positive (subnormal) value of the format."""
        return self.from_bits(1)

    def to_bits(self, value: float) -> int:
        return self.bits_struct.unpack(self.value_struct.pack(value))[0]

    def from_bits(self, bits: int) -> float:
        return self.value_struct.unpack(self.bits_struct.pack(bits))[0]

    def coerce(self, value) -> float:
        """Round ``value`` to this format.

        :raises TypeError: If ``value`` is not a real number.
        :raises InvalidArgumentError: If ``value`` is not finite in this format.
        """
        if not isinstance(value, (int, float)):
            raise TypeError(f"Expected a real number, got {type(value).__name__}")
        try:
            value = self.value_struct.unpack(self.value_struct.pack(float(value)))[0]
        except (OverflowError, struct.error) as exc:
            raise InvalidArgumentError(f"{value!r} does not fit in {self.name}") from exc
        if not math.isfinite(value):
            raise InvalidArgumentError(f"Range arguments must be finite, got {value!r}")
        return value

    def next_toward(self, value: float, up: bool) -> float:
        """Adjacent representable value above (``up``) or below ``value``."""
        if value == 0.0:
            return self.epsilon if up else -self.epsilon
        bits = self.to_bits(value)
        bits += 1 if (value > 0) == up else -1
        return self.from_bits(bits)


DOUBLE = FloatFormat("double", "<d", "<Q")
SINGLE = FloatFormat("single", "<f", "<I")

DOUBLE_EPSILON = DOUBLE.epsilon  #: 2**-1074, default step of double ranges
FLOAT_EPSILON = SINGLE.epsilon  #: 2**-149, default step of single ranges


def closed_form_count(start, end, step) -> int:
    """Number of elements of the stepped range ``start -> end`` by ``step``.

    :param start: First element.
    :param end: Exclusive bound.
    :param step: Non-zero increment.
    :returns: ``ceil(|end - start| / |step|)`` if ``step`` points from
        ``start`` toward ``end``, else ``0``.
    :rtype: int
    :raises InvalidArgumentError: If ``step`` is zero.
    """
    if step == 0:
        raise InvalidArgumentError("Step cannot be zero.")
    if not ((step > 0 and start < end) or (step < 0 and start > end)):
        return 0
    return math.ceil((Fraction(end) - Fraction(start)) / Fraction(step))


class SteppedRange:
    """Lazy, restartable stepped sequence with an exclusive end.

    Every call to ``iter()`` starts a fresh, independent pass.

    :ivar start: First element (in its numeric form).
    :ivar end: Exclusive bound (in its numeric form).
    :ivar step: Increment between elements.
    :ivar count: Number of elements yielded by each pass.
    :type count: int
    """

    def __init__(self, start, end, step):
        self.count = closed_form_count(start, end, step)
        self.start = start
        self.end = end
        self.step = step
        _logger.debug(
            "%s(%r, %r, %r) holds %d elements",
            type(self).__name__, start, end, step, self.count,
        )

    def __iter__(self) -> Iterator:
        for i in range(self.count):
            yield self._element(i)

    def __len__(self):
        return self.count

    def _element(self, i: int):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.start!r}, {self.end!r}, {self.step!r})"


class FloatRange(SteppedRange):
    """Stepped range over one IEEE 754 format.

    Each element is the previous one plus ``step``, rounded to the format.
    Should that sum reach or pass ``end`` before ``count`` elements have been
    produced, the element is clamped to the last representable value before
    ``end``, so elements never leave ``[start, end)``.
    """

    def __init__(self, start, end, step, fmt: FloatFormat):
        self.format = fmt
        super().__init__(fmt.coerce(start), fmt.coerce(end), fmt.coerce(step))

    def __iter__(self) -> Iterator[float]:
        current = self.start
        for i in range(self.count):
            if i:
                current = self._advance(current)
            yield current

    def _before_end(self, value: float) -> bool:
        return value < self.end if self.step > 0 else value > self.end

    def _advance(self, current: float) -> float:
        total = current + self.step
        if self._before_end(total):
            total = self.format.coerce(total)
            if self._before_end(total):
                return total
        return self.format.next_toward(self.end, up=self.step < 0)


class CharRange(SteppedRange):
    """Stepped range over 16-bit characters, stepping by code point."""

    def __init__(self, start: str, end: str, step: int = 1):
        if not isinstance(step, int) or isinstance(step, bool):
            raise TypeError(f"Char step must be an int, got {type(step).__name__}")
        super().__init__(_code_point(start), _code_point(end), step)

    def _element(self, i: int) -> str:
        return chr(self.start + i * self.step)

    def __repr__(self):
        return f"CharRange({chr(self.start)!r}, {chr(self.end)!r}, {self.step!r})"


def _code_point(c: str) -> int:
    if not isinstance(c, str) or len(c) != 1:
        raise InvalidArgumentError(f"Expected a single character, got {c!r}")
    if ord(c) > CHAR_MAX:
        raise InvalidArgumentError(f"Character {c!r} does not fit in 16 bits")
    return ord(c)


def double_range(start: float, end: float, step: float = DOUBLE_EPSILON) -> FloatRange:
    """Doubles from ``start`` toward ``end`` (exclusive) by ``step``.

    Each element is the previous one plus ``step``. Iteration is bounded by
    :func:`double_count`, so a step too small to change the accumulator
    repeats values instead of looping forever.

    :raises InvalidArgumentError: If ``step`` is zero or an argument is not finite.
    """
    return FloatRange(start, end, step, DOUBLE)


def double_count(start: float, end: float, step: float = DOUBLE_EPSILON) -> int:
    """Length of ``double_range(start, end, step)`` without iterating it."""
    return closed_form_count(DOUBLE.coerce(start), DOUBLE.coerce(end), DOUBLE.coerce(step))


def float_range(start: float, end: float, step: float = FLOAT_EPSILON) -> FloatRange:
    """Single precision variant of :func:`double_range`.

    Arguments and every running sum are rounded to IEEE 754 binary32.
    """
    return FloatRange(start, end, step, SINGLE)


def float_count(start: float, end: float, step: float = FLOAT_EPSILON) -> int:
    return closed_form_count(SINGLE.coerce(start), SINGLE.coerce(end), SINGLE.coerce(step))


def char_range(start: str, end: str, step: int = 1) -> CharRange:
    """Characters from ``start`` toward ``end`` (exclusive) by ``step`` code points."""
    return CharRange(start, end, step)


def char_count(start: str, end: str, step: int = 1) -> int:
    return CharRange(start, end, step).count
