"""
CCSDS Primary Header Codec

Every packet in a PDS capture starts with a fixed 6-byte, big-endian
primary header:

    Byte │ Bits   │ Field
    ─────┼────────┼─────────────────────────────────────────
    0    │ 7-5    │ Version (must be 0)
    0    │ 4      │ Type flag
    0    │ 3      │ Secondary header flag
    0-1  │ 2-0,all│ APID (11 bits)
    2    │ 7-6    │ Sequence flags
    2-3  │ 5-0,all│ Sequence count (14 bits, wraps at 16384)
    4-5  │ all    │ Payload length - 1

A nonzero version means the stream is corrupted at this point. It is
reported as StructuralDecodeError, never as end of input.
"""

import struct

from ..errors import StructuralDecodeError
from ..interfaces.packet_records import PRIMARY_HEADER_SIZE, PrimaryHeader


_HEADER_STRUCT = struct.Struct('>HHH')


def decode_primary_header(buf: bytes) -> PrimaryHeader:
    """
    Decode a 6-byte primary header.

    Args:
        buf: At least 6 bytes; only the first 6 are used

    Returns:
        PrimaryHeader with all fields populated

    Raises:
        StructuralDecodeError: version field is not 0
        ValueError: fewer than 6 bytes given
    """
    if len(buf) < PRIMARY_HEADER_SIZE:
        raise ValueError(f"primary header needs {PRIMARY_HEADER_SIZE} bytes, got {len(buf)}")

    word0, word1, length_field = _HEADER_STRUCT.unpack_from(buf)

    version = (word0 >> 13) & 0x07
    if version != 0:
        raise StructuralDecodeError(version, length_field)

    return PrimaryHeader(
        version=version,
        type_flag=(word0 >> 12) & 0x01,
        secondary_header_flag=(word0 >> 11) & 0x01,
        apid=word0 & 0x07FF,
        sequence_flags=(word1 >> 14) & 0x03,
        sequence_count=word1 & 0x3FFF,
        length_field=length_field,
    )


def _check_width(name: str, value: int, bits: int) -> int:
    if not 0 <= value < (1 << bits):
        raise ValueError(f"{name}={value} does not fit in {bits} bits")
    return value


def encode_primary_header(header: PrimaryHeader) -> bytes:
    """
    Encode a primary header into its 6-byte wire form.

    The version is written as given, so corrupted frames can be produced
    on purpose.
    """
    word0 = (
        (_check_width('version', header.version, 3) << 13)
        | (_check_width('type_flag', header.type_flag, 1) << 12)
        | (_check_width('secondary_header_flag', header.secondary_header_flag, 1) << 11)
        | _check_width('apid', header.apid, 11)
    )
    word1 = (
        (_check_width('sequence_flags', header.sequence_flags, 2) << 14)
        | _check_width('sequence_count', header.sequence_count, 14)
    )
    length_field = _check_width('length_field', header.length_field, 16)
    return _HEADER_STRUCT.pack(word0, word1, length_field)
