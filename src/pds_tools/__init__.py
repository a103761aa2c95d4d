"""
pds-tools: MODIS PDS capture statistics and merging

This package decodes MODIS Production Data Set captures (CCSDS primary
header plus the 12-byte MODIS secondary header) and provides two tools:

    1. info  - per-channel packet, invalid, missing and duplicate counts,
               first/last packet time and packet classification counts
    2. merge - time ordered, duplicate-free merge of overlapping captures
               for one channel and time window

Architecture:
    capture bytes → PacketReader → codecs → CaptureAnalyzer | TemporalStreamMerger

Version: 1.0.0
"""

__version__ = "1.0.0"

from .interfaces.packet_records import (
    CaptureStats,
    ChannelStats,
    InstrumentPacket,
    MergeResult,
    Timestamp,
    TimeWindow,
)

__all__ = [
    "CaptureStats",
    "ChannelStats",
    "InstrumentPacket",
    "MergeResult",
    "Timestamp",
    "TimeWindow",
    "__version__",
]
