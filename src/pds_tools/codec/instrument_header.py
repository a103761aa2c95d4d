"""
Instrument (secondary) header codec.

The first 12 bytes of every instrument payload carry the timestamp and the
packet classification; the last two bytes carry a 12-bit checksum:

    Byte │ Bits     │ Field
    ─────┼──────────┼──────────────────────────────────────────
    0-1  │ all      │ Day count since 1958-01-01
    2-5  │ all      │ Millisecond of day
    6-7  │ all      │ Microsecond of millisecond
    8    │ 7        │ Quicklook flag
    8    │ 6-4      │ Packet type (0 day, 1 night, 2 eng1, 4 eng2)
    8    │ 3-1      │ Scan count
    8    │ 0        │ Mirror side
    9    │ 7        │ Source (0 earth view, 1 calibration)
    9-10 │ 6-0,7-4  │ Sample id (0 engineering, 1..1354 sample count)
    10-11│ 3-0,7-2  │ FPA/AEM configuration
    11   │ 1        │ Science state
    11   │ 0        │ Science abnormal
    N-2  │ 3-0      │ Checksum bits 11-8
    N-1  │ all      │ Checksum bits 7-0
"""

import struct

from ..errors import PayloadTooShortError
from ..interfaces.packet_records import InstrumentHeader, PacketType, SourceKind

INSTRUMENT_HEADER_SIZE = 12
CHECKSUM_SIZE = 2
MIN_PAYLOAD_SIZE = INSTRUMENT_HEADER_SIZE + CHECKSUM_SIZE

_TIME_STRUCT = struct.Struct('>HIH')

_PACKET_TYPES = {t.value: t for t in PacketType}


def read_checksum_field(payload: bytes) -> int:
    """12-bit checksum from the last two payload bytes."""
    return ((payload[-2] & 0x0F) << 8) | payload[-1]


def decode_instrument_header(payload: bytes) -> InstrumentHeader:
    """
    Decode the instrument header and trailing checksum of a payload.

    Raises:
        PayloadTooShortError: payload shorter than 14 bytes
    """
    if len(payload) < MIN_PAYLOAD_SIZE:
        raise PayloadTooShortError(len(payload), MIN_PAYLOAD_SIZE)

    days, millisecond, microsecond = _TIME_STRUCT.unpack_from(payload)
    b8, b9, b10, b11 = payload[8], payload[9], payload[10], payload[11]

    type_code = (b8 & 0x70) >> 4

    return InstrumentHeader(
        days=days,
        millisecond=millisecond,
        microsecond=microsecond,
        quicklook=(b8 & 0x80) >> 7,
        packet_type=_PACKET_TYPES.get(type_code, type_code),
        scan_count=(b8 & 0x0E) >> 1,
        mirror_side=b8 & 0x01,
        source=SourceKind((b9 & 0x80) >> 7),
        sample_id=((b9 & 0x7F) << 4) | ((b10 & 0xF0) >> 4),
        configuration=((b10 & 0x0F) << 6) | ((b11 & 0xFC) >> 2),
        science_state=(b11 & 0x02) >> 1,
        science_abnormal=b11 & 0x01,
        checksum=read_checksum_field(payload),
    )


def encode_instrument_header(header: InstrumentHeader) -> bytes:
    """Encode the 12 leading header bytes. The checksum is written separately."""
    b8 = (
        ((header.quicklook & 0x01) << 7)
        | ((int(header.packet_type) & 0x07) << 4)
        | ((header.scan_count & 0x07) << 1)
        | (header.mirror_side & 0x01)
    )
    b9 = ((int(header.source) & 0x01) << 7) | ((header.sample_id >> 4) & 0x7F)
    b10 = ((header.sample_id & 0x0F) << 4) | ((header.configuration >> 6) & 0x0F)
    b11 = (
        ((header.configuration & 0x3F) << 2)
        | ((header.science_state & 0x01) << 1)
        | (header.science_abnormal & 0x01)
    )
    return _TIME_STRUCT.pack(header.days, header.millisecond, header.microsecond) + bytes(
        (b8, b9, b10, b11)
    )
