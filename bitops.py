from typing import Iterable, List

from errors import InvalidArgumentError

BITS_PER_BYTE = 8  #: Number of flags making up one byte


class BitWriter:
    """Bit-packing writer.

    Accumulates individual bit flags into bytes, least significant bit
    first, and buffers them until flushed.

    :ivar buffer: Internal byte buffer holding fully written bytes.
    :type buffer: bytearray
    :ivar bit_buffer: 8-bit scratch register for accumulating pending bits.
    :type bit_buffer: int
    :ivar bit_count: Number of valid bits currently stored in ``bit_buffer`` (0-7).
    :type bit_count: int
    """

    def __init__(self):
        """Initialize an empty bit writer.

        :returns: None
        :rtype: None
        """
        self.buffer = bytearray()
        self.bit_buffer = 0
        self.bit_count = 0

    def write_bit(self, flag: bool):
        """Write a single flag at the next free bit position.

        :param flag: Truthy for a set bit, falsy for a clear bit.
        :type flag: bool
        :returns: None
        :rtype: None
        """
        if flag:
            self.bit_buffer |= 1 << self.bit_count
        self.bit_count += 1
        if self.bit_count == BITS_PER_BYTE:
            self.buffer.append(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0

    def write_bits(self, flags: Iterable[bool]):
        """Write every flag of ``flags`` in order.

        :param flags: Flags to append, index 0 first.
        :type flags: Iterable[bool]
        :returns: None
        :rtype: None
        """
        for flag in flags:
            self.write_bit(flag)

    def flush(self) -> bytes:
        """Flush remaining bits (if any) and return the full byte buffer.

        A partial byte is completed with clear bits at its high end before
        being appended.

        :returns: The accumulated bytes written so far.
        :rtype: bytes
        """
        if self.bit_count > 0:
            self.buffer.append(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0
        return bytes(self.buffer)


class BitReader:
    """Bit-unpacking reader.

    Reads flags from a bytes-like object, least significant bit of each
    byte first.

    :ivar data: Input data to read bits from.
    :type data: bytes
    :ivar pos: Current position in ``data`` (byte index).
    :type pos: int
    :ivar bit_buffer: Scratch register holding the unread bits of the current byte.
    :type bit_buffer: int
    :ivar bit_count: Number of unread bits remaining in ``bit_buffer`` (0-8).
    :type bit_count: int
    """

    def __init__(self, data: bytes):
        """Create a bit reader for the given input ``data``.

        :param data: Source data to read from.
        :type data: bytes
        :returns: None
        :rtype: None
        """
        self.data = data
        self.pos = 0
        self.bit_buffer = 0
        self.bit_count = 0

    def read_bit(self) -> bool:
        """Read the next flag from the stream.

        :returns: ``True`` if the next bit is set.
        :rtype: bool
        :raises EOFError: If the end of data has been reached.
        """
        if self.bit_count == 0:
            if self.pos >= len(self.data):
                raise EOFError("Unexpected end of data")
            self.bit_buffer = self.data[self.pos]
            self.pos += 1
            self.bit_count = BITS_PER_BYTE
        flag = bool(self.bit_buffer & 1)
        self.bit_buffer >>= 1
        self.bit_count -= 1
        return flag

    def read_bits(self, nbits: int) -> List[bool]:
        """Read ``nbits`` flags from the stream.

        :param nbits: Number of flags to read.
        :type nbits: int
        :returns: The next ``nbits`` flags in stream order.
        :rtype: List[bool]
        :raises EOFError: If the end of data is reached before reading ``nbits``.
        """
        return [self.read_bit() for _ in range(nbits)]


def byte_to_bits(b: int) -> List[bool]:
    """Split one byte into its 8 flags, least significant bit first.

    :param b: Byte value in ``0..255``.
    :type b: int
    :returns: ``flags[i] == bool((b >> i) & 1)``.
    :rtype: List[bool]
    :raises InvalidArgumentError: If ``b`` is not a byte value.
    """
    if not 0 <= b <= 0xFF:
        raise InvalidArgumentError(f"Not a byte value: {b}")
    return [bool((b >> i) & 1) for i in range(BITS_PER_BYTE)]


def normalize_bits(flags: Iterable[bool], width: int) -> List[bool]:
    """Bring a flag sequence to exactly ``width`` entries.

    Longer input keeps its first ``width`` entries. Shorter input is padded
    with ``False`` at the low-index end.

    :param flags: Flags to normalize.
    :type flags: Iterable[bool]
    :param width: Target length.
    :type width: int
    :returns: A new list of length ``width``.
    :rtype: List[bool]
    """
    flags = [bool(flag) for flag in flags]
    if len(flags) > width:
        return flags[:width]
    return [False] * (width - len(flags)) + flags


def fold_bits(flags: Iterable[bool]) -> int:
    """Assemble an unsigned integer from flags, index 0 being the LSB.

    Bits are folded from the highest index down, shifting left and OR-ing
    in each flag.

    :param flags: Flags to assemble.
    :type flags: Iterable[bool]
    :returns: Non-negative integer with ``len(flags)`` significant bits at most.
    :rtype: int
    """
    value = 0
    for flag in reversed(list(flags)):
        value = (value << 1) | (1 if flag else 0)
    return value


def bits_to_byte(flags: Iterable[bool]) -> int:
    """Inverse of :func:`byte_to_bits`, normalizing to 8 flags first.

    :param flags: Flags to assemble.
    :type flags: Iterable[bool]
    :returns: Byte value in ``0..255``.
    :rtype: int
    """
    return fold_bits(normalize_bits(flags, BITS_PER_BYTE))


def bits_to_bytes(flags: Iterable[bool]) -> bytes:
    """Pack any number of flags into bytes.

    Flag ``i`` lands in byte ``i // 8`` at bit ``i % 8``. The last byte is
    completed with clear high bits.

    :param flags: Flags to pack.
    :type flags: Iterable[bool]
    :returns: ``ceil(len(flags) / 8)`` bytes.
    :rtype: bytes
    """
    writer = BitWriter()
    writer.write_bits(flags)
    return writer.flush()


def bytes_to_bits(data: bytes) -> List[bool]:
    """Unpack bytes into flags, byte-major and bit-minor.

    :param data: Bytes to unpack.
    :type data: bytes
    :returns: ``8 * len(data)`` flags.
    :rtype: List[bool]
    """
    return BitReader(data).read_bits(len(data) * BITS_PER_BYTE)
