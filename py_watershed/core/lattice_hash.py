"""
Deterministic integer hashing for lattice coordinates.

Every random-looking quantity that has to be reproducible from the seed
(node jitter, flood tie-breaking offsets) is derived from these helpers
instead of a stateful PRNG, so results do not depend on visiting order.
"""

M = 1 << 30


def _int32(n):
    """Wrap to a signed 32-bit integer."""
    n = int(n) & 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


def hash32(num: int) -> int:
    """
    Xorshift style 32-bit integer hash.

    Args:
        num: Any integer, wrapped to 32 bits first

    Returns:
        Signed 32-bit hash value
    """
    num = _int32(num)
    num = _int32(num ^ (num << 13))
    num = _int32(num ^ (num >> 17))
    num = _int32(num ^ (num << 5))
    return _int32(num * 0x4F6CDD1D)


def randf(coord, seed: int) -> float:
    """
    Uniform value in [0, 1) seeded by a lattice coordinate and a seed.

    Args:
        coord: Object with integer ``x`` and ``y`` attributes
        seed: Integer seed

    Returns:
        Float in [0, 1)
    """
    r = hash32(coord.y * 7 ^ hash32(coord.x * 11 ^ hash32(seed)))
    return (abs(r) % M) / M
