"""
12-bit checksum over packed instrument samples.

The instrument packs 12-bit samples two per three bytes:

    byte 3k      byte 3k+1     byte 3k+2
    ┌────────┐  ┌────┬────┐  ┌────────┐
    │ s0 hi8 │  │s0lo│s1hi│  │ s1 lo8 │
    └────────┘  └────┴────┘  └────────┘

The checksum is the plain sum of the samples, shifted right by 4 and masked
to 12 bits. The trailing checksum field is itself the last packed sample,
which is why the sample count drops one.
"""

import numpy as np

from .instrument_header import INSTRUMENT_HEADER_SIZE


def sample_count(payload_length: int) -> int:
    """
    Number of samples covered by the checksum: floor((L - 12) / 1.5) - 1.

    Never negative.
    """
    return max(0, (2 * (payload_length - INSTRUMENT_HEADER_SIZE)) // 3 - 1)


def unpack_samples(data: bytes, n: int) -> np.ndarray:
    """Unpack the first n 12-bit samples of a packed byte string."""
    if n <= 0:
        return np.zeros(0, dtype=np.uint16)

    groups = (n + 1) // 2
    packed = bytes(data[:groups * 3]).ljust(groups * 3, b'\x00')
    triplets = np.frombuffer(packed, dtype=np.uint8).reshape(-1, 3).astype(np.uint16)

    samples = np.empty(groups * 2, dtype=np.uint16)
    samples[0::2] = (triplets[:, 0] << 4) | (triplets[:, 1] >> 4)
    samples[1::2] = ((triplets[:, 1] & 0x0F) << 8) | triplets[:, 2]
    return samples[:n]


def checksum12(data: bytes, n: int) -> int:
    """
    Checksum of the first n packed samples in data.

    Args:
        data: Payload bytes following the instrument header
        n: Number of 12-bit samples to include

    Returns:
        (sum >> 4) & 0xFFF
    """
    total = int(unpack_samples(data, n).sum(dtype=np.uint64))
    return (total >> 4) & 0xFFF


def payload_checksum(payload: bytes) -> int:
    """Checksum computed over a complete payload (instrument header included)."""
    return checksum12(payload[INSTRUMENT_HEADER_SIZE:], sample_count(len(payload)))
