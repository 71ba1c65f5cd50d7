"""Extracting bitfields from unsigned integers."""


def bits(value: int, lo: int, hi: int, width: int) -> int:
    """Return the bits of ``value`` in the range [lo, hi) shifted down to bit 0.

    ``width`` is the bit width of the integer type ``value`` belongs to
    (8, 16 or 32 for the binary formats read here).
    """
    if lo > hi:
        raise ValueError(f"bit range start {lo} is past its end {hi}")
    if hi > width:
        raise ValueError(f"bit range end {hi} exceeds width {width}")
    mask = (1 << (hi - lo)) - 1
    return (value >> lo) & mask