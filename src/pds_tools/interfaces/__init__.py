"""Record types shared by the codecs, engines and output adapters."""

from .packet_records import (
    CaptureStats,
    ChannelStats,
    InstrumentHeader,
    InstrumentPacket,
    MergeResult,
    PacketType,
    PrimaryHeader,
    RawPacket,
    RejectReason,
    SourceKind,
    Timestamp,
    TimeWindow,
)

__all__ = [
    'CaptureStats',
    'ChannelStats',
    'InstrumentHeader',
    'InstrumentPacket',
    'MergeResult',
    'PacketType',
    'PrimaryHeader',
    'RawPacket',
    'RejectReason',
    'SourceKind',
    'Timestamp',
    'TimeWindow',
]
