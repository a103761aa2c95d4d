"""
Modulo-16384 sequence count arithmetic.

Every comparison of 14-bit sequence counts goes through these helpers so the
half-range threshold is defined in exactly one place.
"""

SEQUENCE_MODULUS = 16384
HALF_RANGE = SEQUENCE_MODULUS // 2

# Forward distance meaning "same count again"
DUPLICATE_DISTANCE = SEQUENCE_MODULUS - 1


def forward_distance(a: int, b: int) -> int:
    """Steps needed to count forward from a to b, in [0, 16383]."""
    return (b - a) % SEQUENCE_MODULUS


def signed_distance(a: int, b: int) -> int:
    """
    Wrapped difference b - a in [-8192, 8191].

    Positive means b comes after a, negative means b comes before a.
    """
    return (b - a + HALF_RANGE) % SEQUENCE_MODULUS - HALF_RANGE


def missing_between(a: int, b: int) -> int:
    """Packets missing between consecutive counts a and b: (b - a - 1) mod 16384."""
    return (b - a - 1) % SEQUENCE_MODULUS


def sequence_order(a: int, b: int) -> int:
    """
    Order count a against count b.

    Returns:
        Negative if a comes before b, 0 if equal, positive if a comes after b

    Counts exactly half the range apart are ordered by their raw difference:
    a - b == +8192 puts a first, a - b == -8192 puts a last.
    """
    diff = signed_distance(b, a)
    if diff == -HALF_RANGE and a < b:
        return HALF_RANGE
    return diff
