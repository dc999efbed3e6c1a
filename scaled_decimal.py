import struct
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN, Context
from typing import Sequence, Tuple

from errors import InvalidArgumentError

MAX_DECIMAL_SCALE = 28  #: Largest power-of-ten divisor a scaled decimal can carry
MAGNITUDE_BITS = 96  #: Width of the unsigned magnitude
MAX_INTEGER_DIGITS = 29  #: Decimal digits of the largest 96-bit magnitude
SIGN_MASK = 0x80000000
SCALE_SHIFT = 16
SCALE_MASK = 0x00FF0000
RESERVED_MASK = 0x7F00FFFF  #: Flags bits that must stay clear
WORD_MASK = 0xFFFFFFFF

_WORDS = struct.Struct("<4I")
_ROUNDING_CONTEXT = Context(prec=MAX_DECIMAL_SCALE + 40, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class ScaledDecimal:
    """128-bit scaled decimal: ``(-1)**negative * magnitude / 10**scale``.

    Layout is four 32-bit words: a flags word (scale in bits 16-23, sign in
    bit 31) followed by the 96-bit magnitude split low, mid, high.

    :ivar negative: Sign flag. Negative zero is a distinct value.
    :type negative: bool
    :ivar scale: Power of ten dividing the magnitude (0-28).
    :type scale: int
    :ivar magnitude: Unsigned 96-bit coefficient.
    :type magnitude: int
    """

    negative: bool
    scale: int
    magnitude: int

    def __post_init__(self):
        if not 0 <= self.scale <= MAX_DECIMAL_SCALE:
            raise InvalidArgumentError(f"Scale out of range: {self.scale}")
        if not 0 <= self.magnitude < (1 << MAGNITUDE_BITS):
            raise InvalidArgumentError(
                f"Magnitude does not fit in {MAGNITUDE_BITS} bits: {self.magnitude}"
            )

    def to_words(self) -> Tuple[int, int, int, int]:
        """Split into ``(flags, low, mid, high)`` unsigned 32-bit words."""
        flags = self.scale << SCALE_SHIFT
        if self.negative:
            flags |= SIGN_MASK
        return (
            flags,
            self.magnitude & WORD_MASK,
            (self.magnitude >> 32) & WORD_MASK,
            (self.magnitude >> 64) & WORD_MASK,
        )

    @classmethod
    def from_words(cls, words: Sequence[int]) -> "ScaledDecimal":
        """Reassemble from ``(flags, low, mid, high)``.

        :param words: Four words, each read as unsigned 32-bit.
        :type words: Sequence[int]
        :returns: The decoded value.
        :rtype: ScaledDecimal
        :raises InvalidArgumentError: If there are not four words, reserved
            flag bits are set, or the scale exceeds 28.
        """
        if len(words) != 4:
            raise InvalidArgumentError(f"Expected 4 words, got {len(words)}")
        flags, low, mid, high = (word & WORD_MASK for word in words)
        if flags & RESERVED_MASK:
            raise InvalidArgumentError(f"Reserved decimal flag bits set: {flags:#010x}")
        return cls(
            negative=bool(flags & SIGN_MASK),
            scale=(flags & SCALE_MASK) >> SCALE_SHIFT,
            magnitude=low | (mid << 32) | (high << 64),
        )

    def to_bytes(self) -> bytes:
        """Encode as 16 bytes, each word little-endian."""
        return _WORDS.pack(*self.to_words())

    @classmethod
    def from_bytes(cls, data: bytes) -> "ScaledDecimal":
        """Decode 16 bytes produced by :meth:`to_bytes`.

        :raises InvalidArgumentError: If ``data`` is not 16 bytes long or
            holds an invalid flags word.
        """
        if len(data) != _WORDS.size:
            raise InvalidArgumentError(
                f"Scaled decimal needs {_WORDS.size} bytes, got {len(data)}"
            )
        return cls.from_words(_WORDS.unpack(data))

    @classmethod
    def from_decimal(cls, value: Decimal) -> "ScaledDecimal":
        """Convert a :class:`decimal.Decimal`.

        Values with more than 28 fractional digits are rounded half-even to
        28 digits. Positive exponents are folded into the magnitude.

        :raises InvalidArgumentError: For NaN, infinities, or coefficients
            that do not fit in 96 bits.
        """
        if not value.is_finite():
            raise InvalidArgumentError(f"Cannot represent {value} as a scaled decimal")
        if value.is_zero():
            scale = min(max(-value.as_tuple().exponent, 0), MAX_DECIMAL_SCALE)
            return cls(negative=value.is_signed(), scale=scale, magnitude=0)
        if value.adjusted() > MAX_INTEGER_DIGITS - 1:
            raise InvalidArgumentError(f"{value} has more than {MAX_INTEGER_DIGITS} integer digits")
        if value.as_tuple().exponent < -MAX_DECIMAL_SCALE:
            value = value.quantize(Decimal(1).scaleb(-MAX_DECIMAL_SCALE), context=_ROUNDING_CONTEXT)
        sign, digits, exponent = value.as_tuple()
        magnitude = int("".join(map(str, digits)) or "0")
        if exponent > 0:
            magnitude *= 10 ** exponent
            exponent = 0
        return cls(negative=bool(sign), scale=-exponent, magnitude=magnitude)

    def to_decimal(self) -> Decimal:
        """Exact :class:`decimal.Decimal` with the same sign, digits and scale."""
        digits = tuple(int(d) for d in str(self.magnitude))
        return Decimal((int(self.negative), digits, -self.scale))

    def __str__(self):
        return str(self.to_decimal())
