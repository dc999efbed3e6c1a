import logging
import struct
from decimal import Decimal
from typing import Dict, Optional, Tuple, Union

from bitops import BITS_PER_BYTE
from errors import InvalidArgumentError
from scaled_decimal import ScaledDecimal

_logger = logging.getLogger(__name__)

CHAR_MAX = 0xFFFF  #: Largest code point a 16-bit char can hold


class Primitive:
    """Descriptor of one supported primitive kind and its byte layout.

    Subclasses implement ``_encode`` and ``_decode``; this base class does
    the type and length guarding around them.

    :ivar name: Registry name of the kind.
    :type name: str
    :ivar width: Bit width, or ``None`` for variable-length kinds.
    :type width: Optional[int]
    :ivar accepts: Python types accepted by :meth:`encode`.
    :type accepts: Tuple[type, ...]
    :ivar writable: Whether single bits may be set on values of this kind.
    :type writable: bool
    """

    writable = True

    def __init__(self, name: str, width: Optional[int], accepts: Tuple[type, ...]):
        self.name = name
        self.width = width
        self.accepts = accepts

    @property
    def size(self) -> Optional[int]:
        """Fixed byte length of the layout, ``None`` if variable."""
        if self.width is None:
            return None
        return self.width // BITS_PER_BYTE

    def encode(self, value) -> bytes:
        """Return the canonical little-endian layout of ``value``.

        :raises TypeError: If ``value`` is a ``bool`` or not of an accepted
            Python type.
        :raises InvalidArgumentError: If ``value`` is out of range for the kind.
        """
        if isinstance(value, bool) or not isinstance(value, self.accepts):
            raise TypeError(f"Cannot encode {type(value).__name__} as {self.name}")
        return self._encode(value)

    def decode(self, data: bytes):
        """Inverse of :meth:`encode`.

        :raises InvalidArgumentError: If ``data`` has the wrong length for the kind.
        """
        data = bytes(data)
        self._check_size(data)
        return self._decode(data)

    def _check_size(self, data: bytes):
        if len(data) != self.size:
            raise InvalidArgumentError(
                f"{self.name} needs {self.size} bytes, got {len(data)}"
            )

    def bit_width(self, value) -> int:
        """Number of addressable bits in ``value``."""
        return self.width

    def normalized_width(self, nbits: int) -> int:
        """Width a sequence of ``nbits`` flags is normalized to before decoding."""
        return self.width

    def _encode(self, value) -> bytes:
        raise NotImplementedError

    def _decode(self, data: bytes):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class StructPrimitive(Primitive):
    """Fixed-width kind laid out by a :mod:`struct` format."""

    def __init__(self, name: str, fmt: str, accepts: Tuple[type, ...] = (int,)):
        self.struct = struct.Struct(fmt)
        super().__init__(name, self.struct.size * BITS_PER_BYTE, accepts)

    def _encode(self, value) -> bytes:
        try:
            return self.struct.pack(value)
        except (struct.error, OverflowError) as exc:
            raise InvalidArgumentError(f"Cannot encode {value!r} as {self.name}: {exc}") from exc

    def _decode(self, data: bytes):
        return self.struct.unpack(data)[0]


class CharPrimitive(StructPrimitive):
    """16-bit character, a one-character ``str`` in Python."""

    def __init__(self, name: str = "char"):
        super().__init__(name, "<H", accepts=(str,))

    def _encode(self, value: str) -> bytes:
        if len(value) != 1:
            raise InvalidArgumentError(f"Expected a single character, got {value!r}")
        code = ord(value)
        if code > CHAR_MAX:
            raise InvalidArgumentError(f"Character {value!r} does not fit in 16 bits")
        return self.struct.pack(code)

    def _decode(self, data: bytes) -> str:
        return chr(self.struct.unpack(data)[0])


class WideIntPrimitive(Primitive):
    """Fixed-width integer wider than any :mod:`struct` format (128-bit)."""

    def __init__(self, name: str, width: int, signed: bool):
        super().__init__(name, width, (int,))
        self.signed = signed

    def _encode(self, value: int) -> bytes:
        try:
            return value.to_bytes(self.size, "little", signed=self.signed)
        except OverflowError as exc:
            raise InvalidArgumentError(f"Cannot encode {value!r} as {self.name}") from exc

    def _decode(self, data: bytes) -> int:
        return int.from_bytes(data, "little", signed=self.signed)


class DecimalPrimitive(Primitive):
    """128-bit scaled decimal, see :class:`scaled_decimal.ScaledDecimal`."""

    def __init__(self, name: str = "decimal"):
        super().__init__(name, 128, (ScaledDecimal, Decimal))

    def _encode(self, value) -> bytes:
        if isinstance(value, Decimal):
            value = ScaledDecimal.from_decimal(value)
        return value.to_bytes()

    def _decode(self, data: bytes) -> ScaledDecimal:
        return ScaledDecimal.from_bytes(data)


class BigIntPrimitive(Primitive):
    """Arbitrary-size integer with a minimal two's complement layout.

    Zero encodes as a single ``0x00`` byte. Values are read-only at the bit
    level since their width depends on the value itself.
    """

    writable = False

    def __init__(self, name: str = "bigint"):
        super().__init__(name, None, (int,))

    @staticmethod
    def byte_length(value: int) -> int:
        """Smallest byte count whose two's complement form holds ``value``."""
        magnitude = value if value >= 0 else ~value
        return (magnitude.bit_length() + BITS_PER_BYTE) // BITS_PER_BYTE

    def bit_width(self, value: int) -> int:
        return self.byte_length(value) * BITS_PER_BYTE

    def normalized_width(self, nbits: int) -> int:
        nbytes = max(1, -(-nbits // BITS_PER_BYTE))
        return nbytes * BITS_PER_BYTE

    def _encode(self, value: int) -> bytes:
        return value.to_bytes(self.byte_length(value), "little", signed=True)

    def _check_size(self, data: bytes):
        if not data:
            raise InvalidArgumentError("bigint needs at least 1 byte")

    def _decode(self, data: bytes) -> int:
        return int.from_bytes(data, "little", signed=True)


INT8 = StructPrimitive("int8", "<b")
UINT8 = StructPrimitive("uint8", "<B")
INT16 = StructPrimitive("int16", "<h")
UINT16 = StructPrimitive("uint16", "<H")
INT32 = StructPrimitive("int32", "<i")
UINT32 = StructPrimitive("uint32", "<I")
INT64 = StructPrimitive("int64", "<q")
UINT64 = StructPrimitive("uint64", "<Q")
INT128 = WideIntPrimitive("int128", 128, signed=True)
UINT128 = WideIntPrimitive("uint128", 128, signed=False)
CHAR = CharPrimitive()
FLOAT32 = StructPrimitive("float32", "<f", accepts=(int, float))
FLOAT64 = StructPrimitive("float64", "<d", accepts=(int, float))
DECIMAL = DecimalPrimitive()
BIGINT = BigIntPrimitive()

INTEGER_KINDS = (INT8, UINT8, INT16, UINT16, INT32, UINT32, INT64, UINT64, INT128, UINT128)

PRIMITIVES: Dict[str, Primitive] = {
    p.name: p
    for p in INTEGER_KINDS + (CHAR, FLOAT32, FLOAT64, DECIMAL, BIGINT)
}

ALIASES: Dict[str, str] = {
    "sbyte": "int8",
    "byte": "uint8",
    "short": "int16",
    "ushort": "uint16",
    "int": "int32",
    "uint": "uint32",
    "long": "int64",
    "ulong": "uint64",
    "float": "float32",
    "single": "float32",
    "double": "float64",
}


def resolve(kind: Union[str, Primitive]) -> Primitive:
    """Look up a primitive descriptor by name or alias.

    :param kind: Registry name, alias, or an existing descriptor.
    :type kind: Union[str, Primitive]
    :returns: The matching descriptor.
    :rtype: Primitive
    :raises InvalidArgumentError: If ``kind`` names no supported primitive.
    """
    if isinstance(kind, Primitive):
        return kind
    name = ALIASES.get(kind, kind)
    if name != kind:
        _logger.debug("Resolved primitive alias %r to %r", kind, name)
    try:
        return PRIMITIVES[name]
    except KeyError:
        raise InvalidArgumentError(f"Unknown primitive kind: {kind!r}") from None
