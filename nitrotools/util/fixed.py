"""Fixed-point to float conversions."""

from nitrotools.util.bits import bits


def fix32(x: int, sign_bits: int, int_bits: int, frac_bits: int) -> float:
    """Read a fixed-point number from the low bits of a 32-bit integer.

    The low ``sign_bits + int_bits + frac_bits`` bits of ``x`` form an
    integer (two's complement when ``sign_bits`` is 1) which is scaled by
    2**-frac_bits.
    """
    if sign_bits > 1:
        raise ValueError("at most one sign bit is allowed")
    if int_bits + frac_bits <= 0:
        raise ValueError("the number needs integer or fraction bits")
    total = sign_bits + int_bits + frac_bits
    if total > 32:
        raise ValueError("fixed-point format is wider than 32 bits")

    raw = bits(x, 0, total, 32)
    if sign_bits and raw & (1 << (int_bits + frac_bits)):
        raw -= 1 << total
    return raw * 0.5 ** frac_bits


def fix16(x: int, sign_bits: int, int_bits: int, frac_bits: int) -> float:
    """Like :func:`fix32` for formats that fit in 16 bits."""
    if sign_bits + int_bits + frac_bits > 16:
        raise ValueError("fixed-point format is wider than 16 bits")
    return fix32(x, sign_bits, int_bits, frac_bits)