"""
GF(2^128) arithmetic for GHASH.

Elements are 128-bit integers in the GCM bit order: the most significant
bit (bit 127) is the coefficient of x^0. The field polynomial is

    f(x) = x^128 + x^7 + x^2 + x + 1

and in this bit order its low terms fold back as R = 0xE1 << 120.
"""

from .fixed_bytes import Block


GF128_R = 0xE1000000000000000000000000000000
GF128_ZERO = 0
GF128_ONE = 1 << 127  # x^0
_MASK128 = (1 << 128) - 1


def gf128_mul(x: int, y: int) -> int:
    """
    Multiply two GF(2^128) elements.

    NIST SP 800-38D Algorithm 1: walk the bits of y from x^0 (MSB) to
    x^127 (LSB), accumulating the running multiple V of x; each step
    multiplies V by x, which is a right shift plus a conditional fold of
    the bit that falls off into R.

    Args:
        x: First element as a 128-bit integer
        y: Second element as a 128-bit integer

    Returns:
        x * y in GF(2^128)
    """
    if not (0 <= x <= _MASK128 and 0 <= y <= _MASK128):
        raise ValueError("GF(2^128) operands must be 128-bit non-negative integers")

    z = 0
    v = x
    for i in range(127, -1, -1):
        if (y >> i) & 1:
            z ^= v
        if v & 1:
            v = (v >> 1) ^ GF128_R
        else:
            v >>= 1
    return z


def gf128_mul_blocks(a: bytes, b: bytes) -> bytes:
    """Multiply two 16-byte blocks as GF(2^128) elements."""
    return Block.from_int(gf128_mul(Block(a).to_int(), Block(b).to_int()))


def gf128_pow(base: int, exp: int) -> int:
    """base^exp by square-and-multiply; base^0 is GF128_ONE."""
    if exp < 0:
        raise ValueError("Exponent must be non-negative")
    result = GF128_ONE
    while exp:
        if exp & 1:
            result = gf128_mul(result, base)
        base = gf128_mul(base, base)
        exp >>= 1
    return result
