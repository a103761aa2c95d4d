"""
Packet validation and frame construction.

Combines the primary header, instrument header and checksum codecs. The
builders are the inverse path: they synthesise well-formed (or deliberately
broken) frames for test captures.
"""

from ..interfaces.packet_records import (
    InstrumentHeader,
    InstrumentPacket,
    PrimaryHeader,
    RawPacket,
)
from .checksum import payload_checksum
from .instrument_header import (
    CHECKSUM_SIZE,
    decode_instrument_header,
    encode_instrument_header,
)
from .primary_header import encode_primary_header


def decode_instrument_packet(raw: RawPacket) -> InstrumentPacket:
    """
    Decode the instrument header of a raw packet and verify its checksum.

    Raises:
        PayloadTooShortError: payload cannot hold header and checksum
    """
    payload = raw.payload
    instrument = decode_instrument_header(payload)
    return InstrumentPacket(
        header=raw.header,
        instrument=instrument,
        frame=raw.frame,
        computed_checksum=payload_checksum(payload),
    )


def encode_frame(
    apid: int,
    sequence_count: int,
    payload: bytes,
    version: int = 0,
    sequence_flags: int = 3,
    type_flag: int = 0,
    secondary_header_flag: int = 1,
) -> bytes:
    """Prefix a payload with its primary header."""
    if not payload:
        raise ValueError("payload must not be empty")
    header = PrimaryHeader(
        version=version,
        type_flag=type_flag,
        secondary_header_flag=secondary_header_flag,
        apid=apid,
        sequence_flags=sequence_flags,
        sequence_count=sequence_count,
        length_field=len(payload) - 1,
    )
    return encode_primary_header(header) + payload


def build_instrument_payload(
    instrument: InstrumentHeader,
    data: bytes = b'\x00',
    corrupt_checksum: bool = False,
) -> bytes:
    """
    Build an instrument payload: header, packed sample data, checksum.

    The checksum field must coincide with the last packed sample, so
    len(data) + 2 has to be a multiple of 3 (1, 4, 7, ... data bytes).

    Args:
        instrument: Header fields; its checksum attribute is ignored
        data: Packed sample bytes following the header
        corrupt_checksum: Store a checksum that does not match
    """
    if (len(data) + CHECKSUM_SIZE) % 3:
        raise ValueError(f"sample data of {len(data)} bytes does not end on a sample boundary")

    payload = bytearray(encode_instrument_header(instrument) + bytes(data) + b'\x00\x00')
    checksum = payload_checksum(bytes(payload))
    if corrupt_checksum:
        checksum ^= 0x001
    payload[-2] = (payload[-2] & 0xF0) | (checksum >> 8)
    payload[-1] = checksum & 0xFF
    return bytes(payload)


def build_instrument_frame(
    apid: int,
    sequence_count: int,
    instrument: InstrumentHeader,
    data: bytes = b'\x00',
    corrupt_checksum: bool = False,
) -> bytes:
    """Complete instrument frame with a valid (or deliberately wrong) checksum."""
    payload = build_instrument_payload(instrument, data, corrupt_checksum)
    return encode_frame(apid, sequence_count, payload)
