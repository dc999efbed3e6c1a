"""Conversions between primitive values, bit flag lists and byte layouts.

Every function takes a ``kind``: a registry name such as ``"int32"`` or
``"float64"`` (see :data:`primitives.PRIMITIVES` and
:data:`primitives.ALIASES`) or a :class:`primitives.Primitive` descriptor.

Bit ``i`` of a value is bit ``i % 8`` of byte ``i // 8`` of its canonical
little-endian layout.
"""

import struct
from typing import Iterable, List, Sequence, Union

from bitops import BITS_PER_BYTE, bytes_to_bits, fold_bits, normalize_bits
from errors import BitIndexError, InvalidArgumentError
from primitives import Primitive, resolve

Kind = Union[str, Primitive]

WORD_SIZE = 4  #: Bytes per word in word-array helpers


def to_bytes(value, kind: Kind) -> bytes:
    """Encode ``value`` into the canonical byte layout of ``kind``.

    :param value: Value to encode.
    :param kind: Primitive kind.
    :type kind: Union[str, Primitive]
    :returns: Layout of ``width / 8`` bytes (variable for ``bigint``).
    :rtype: bytes
    """
    return resolve(kind).encode(value)


def bytes_to(kind: Kind, data: bytes):
    """Decode a canonical byte layout back into a value of ``kind``.

    :param kind: Primitive kind.
    :type kind: Union[str, Primitive]
    :param data: Exactly ``width / 8`` bytes.
    :type data: bytes
    :returns: The decoded value.
    :raises InvalidArgumentError: If ``data`` has the wrong length.
    """
    return resolve(kind).decode(data)


def to_bits(value, kind: Kind) -> List[bool]:
    """Expand ``value`` into its flags, byte-major and bit-minor.

    :returns: ``width`` flags, index 0 being the LSB of byte 0.
    :rtype: List[bool]
    """
    return bytes_to_bits(to_bytes(value, kind))


def bits_to(kind: Kind, flags: Iterable[bool]):
    """Build a value of ``kind`` from an arbitrary-length flag sequence.

    The sequence is normalized to the kind's width first: excess flags at
    the tail are dropped, missing flags are added as ``False`` at the
    low-index end. Flags are then folded into an unsigned integer whose bit
    pattern is decoded as ``kind``.

    :param kind: Primitive kind.
    :type kind: Union[str, Primitive]
    :param flags: Flags, index 0 being the least significant bit.
    :type flags: Iterable[bool]
    :returns: The decoded value.
    :raises InvalidArgumentError: If the bit pattern is not a valid value of
        ``kind`` (reserved bits of a scaled decimal).
    """
    primitive = resolve(kind)
    flags = list(flags)
    width = primitive.normalized_width(len(flags))
    raw = fold_bits(normalize_bits(flags, width))
    return primitive.decode(raw.to_bytes(width // BITS_PER_BYTE, "little"))


def _check_index(index: int, width: int):
    if not isinstance(index, int):
        raise TypeError(f"Bit index must be an int, got {type(index).__name__}")
    if isinstance(index, bool) or not 0 <= index < width:
        raise BitIndexError(index, width)


def get_bit(value, index: int, kind: Kind) -> bool:
    """Read bit ``index`` of ``value``.

    :param value: Value to inspect.
    :param index: Global bit index in ``[0, width)``.
    :type index: int
    :param kind: Primitive kind.
    :type kind: Union[str, Primitive]
    :returns: ``True`` if the bit is set.
    :rtype: bool
    :raises BitIndexError: If ``index`` is outside the value's width.
    """
    layout = to_bytes(value, kind)
    _check_index(index, len(layout) * BITS_PER_BYTE)
    byte_index, bit_index = divmod(index, BITS_PER_BYTE)
    return bool((layout[byte_index] >> bit_index) & 1)


def set_bit(value, index: int, bit: bool, kind: Kind):
    """Return a copy of ``value`` with bit ``index`` set to ``bit``.

    All other bits are unchanged and ``value`` itself is never modified.

    :param value: Value to start from.
    :param index: Global bit index in ``[0, width)``.
    :type index: int
    :param bit: New state of the bit.
    :type bit: bool
    :param kind: Primitive kind.
    :type kind: Union[str, Primitive]
    :returns: A new value of the same kind.
    :raises BitIndexError: If ``index`` is outside the value's width.
    :raises TypeError: If the kind is read-only (``bigint``).
    """
    primitive = resolve(kind)
    if not primitive.writable:
        raise TypeError(f"{primitive.name} values are read-only")
    layout = bytearray(primitive.encode(value))
    _check_index(index, len(layout) * BITS_PER_BYTE)
    byte_index, bit_index = divmod(index, BITS_PER_BYTE)
    mask = 1 << bit_index
    if bit:
        layout[byte_index] |= mask
    else:
        layout[byte_index] &= ~mask & 0xFF
    return primitive.decode(bytes(layout))


def bytes_to_words(data: bytes) -> List[int]:
    """Split ``data`` into signed 32-bit little-endian words.

    :raises InvalidArgumentError: If ``len(data)`` is not a multiple of 4.
    """
    if len(data) % WORD_SIZE:
        raise InvalidArgumentError(f"Length {len(data)} is not a multiple of {WORD_SIZE}")
    return list(struct.unpack(f"<{len(data) // WORD_SIZE}i", data))


def words_to_bytes(words: Sequence[int]) -> bytes:
    """Concatenate the little-endian layouts of signed 32-bit ``words``."""
    try:
        return struct.pack(f"<{len(words)}i", *words)
    except struct.error as exc:
        raise InvalidArgumentError(f"Cannot pack words: {exc}") from exc
