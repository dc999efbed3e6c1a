class InvalidArgumentError(ValueError):
    """Raised when an argument cannot be converted or iterated.

    Covers zero or non-finite range arguments, values outside the range of
    their primitive kind, and malformed byte layouts.
    """


class BitIndexError(IndexError):
    """Raised when a bit index falls outside ``[0, width)``.

    :ivar index: The offending index.
    :type index: int
    :ivar width: Bit width of the value being accessed.
    :type width: int
    """

    def __init__(self, index, width: int):
        super().__init__(f"Bit index {index!r} out of range for width {width}")
        self.index = index
        self.width = width
