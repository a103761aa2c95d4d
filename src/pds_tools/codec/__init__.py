"""
Packet codecs for pds-tools.

Primary header, instrument header, packed-sample checksum, calendar and
sequence count arithmetic.
"""

from .primary_header import PRIMARY_HEADER_SIZE, decode_primary_header, encode_primary_header
from .instrument_header import (
    INSTRUMENT_HEADER_SIZE,
    MIN_PAYLOAD_SIZE,
    decode_instrument_header,
    encode_instrument_header,
)
from .checksum import checksum12, payload_checksum, sample_count
from .packet import decode_instrument_packet, build_instrument_frame, encode_frame

__all__ = [
    'PRIMARY_HEADER_SIZE',
    'INSTRUMENT_HEADER_SIZE',
    'MIN_PAYLOAD_SIZE',
    'decode_primary_header',
    'encode_primary_header',
    'decode_instrument_header',
    'encode_instrument_header',
    'checksum12',
    'payload_checksum',
    'sample_count',
    'decode_instrument_packet',
    'build_instrument_frame',
    'encode_frame',
]
