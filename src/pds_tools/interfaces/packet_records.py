"""
Packet Record Data Models

These dataclasses define the records passed between the codecs, the packet
reader, the statistics engine and the stream merger. CaptureStats is the
reporting contract: it is serialised to JSON by `pds-tools info --json`.

Contract Version: 1.0.0
"""

from dataclasses import dataclass, field, asdict
from enum import Enum, IntEnum
from typing import Dict, List, NamedTuple, Optional, Tuple, Union
import json


class PacketType(IntEnum):
    """Instrument packet classification (3-bit field)."""
    DAY = 0
    NIGHT = 1
    ENGINEERING_1 = 2
    ENGINEERING_2 = 4


class SourceKind(IntEnum):
    """Source selector bit of the instrument header."""
    EARTH_VIEW = 0
    CALIBRATION = 1


class Timestamp(NamedTuple):
    """
    Instrument timestamp.

    Tuple ordering is the packet time order: day, then millisecond of day,
    then microsecond of millisecond. Equal timestamps do not imply equal
    packets; the sequence count breaks ties.
    """
    day: int
    millisecond: int
    microsecond: int

    @property
    def window_key(self) -> Tuple[int, int]:
        """(day, millisecond) pair used for time window checks."""
        return (self.day, self.millisecond)


# Size of the primary header preceding every payload
PRIMARY_HEADER_SIZE = 6


@dataclass(frozen=True)
class PrimaryHeader:
    """
    6-byte frame header preceding every packet.

    length_field holds the payload length minus one, as transmitted.
    """
    version: int
    type_flag: int
    secondary_header_flag: int
    apid: int
    sequence_flags: int
    sequence_count: int
    length_field: int

    @property
    def payload_length(self) -> int:
        return self.length_field + 1


@dataclass(frozen=True)
class InstrumentHeader:
    """
    12-byte instrument (secondary) header at the start of the payload,
    plus the 12-bit checksum taken from the last two payload bytes.
    """
    days: int                       # days since 1958-01-01
    millisecond: int                # millisecond of day
    microsecond: int                # microsecond of millisecond
    quicklook: int
    packet_type: Union[PacketType, int]
    scan_count: int
    mirror_side: int
    source: SourceKind
    sample_id: int                  # 0 = engineering, 1..1354 = sample count
    configuration: int
    science_state: int
    science_abnormal: int
    checksum: int = 0

    @property
    def timestamp(self) -> Timestamp:
        return Timestamp(self.days, self.millisecond, self.microsecond)


@dataclass(frozen=True)
class RawPacket:
    """One frame as read from a capture: decoded primary header plus the original bytes."""
    header: PrimaryHeader
    frame: bytes

    @property
    def payload(self) -> bytes:
        return self.frame[PRIMARY_HEADER_SIZE:]


@dataclass(frozen=True)
class InstrumentPacket:
    """A raw packet whose instrument header has been decoded and checksum verified."""
    header: PrimaryHeader
    instrument: InstrumentHeader
    frame: bytes
    computed_checksum: int

    @property
    def checksum_ok(self) -> bool:
        return self.computed_checksum == self.instrument.checksum

    @property
    def timestamp(self) -> Timestamp:
        return self.instrument.timestamp

    @property
    def sequence_count(self) -> int:
        return self.header.sequence_count


# End bound used when no end time is given (beyond any 16-bit day count)
UNBOUNDED_END = (4000000, 90000000)


@dataclass(frozen=True)
class TimeWindow:
    """
    Half-open time window [start, end) on (day, millisecond) pairs.

    Microseconds are not part of the window comparison.
    """
    start: Tuple[int, int] = (0, 0)
    end: Tuple[int, int] = UNBOUNDED_END

    @classmethod
    def unbounded(cls) -> "TimeWindow":
        return cls()

    def contains(self, timestamp: Timestamp) -> bool:
        key = timestamp.window_key
        return self.start <= key < self.end


@dataclass
class ChannelStats:
    """Running counters for one channel id."""
    apid: int
    count: int = 0
    invalid: int = 0
    missing: int = 0
    duplicates: int = 0
    last_sequence_count: int = -1

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PacketTypeCounts:
    """Day / night / engineering counts for one source kind."""
    day: int = 0
    night: int = 0
    engineering: int = 0

    def add(self, packet_type: Union[PacketType, int]) -> None:
        if packet_type == PacketType.DAY:
            self.day += 1
        elif packet_type == PacketType.NIGHT:
            self.night += 1
        elif packet_type in (PacketType.ENGINEERING_1, PacketType.ENGINEERING_2):
            self.engineering += 1


@dataclass
class CaptureStats:
    """
    Integrity and coverage statistics for one capture.

    This is the top-level structure printed by `pds-tools info` and
    optionally written to a JSON file.
    """
    version: str = "1.0.0"
    source: str = ""

    # Per-channel counters, keyed by apid
    channels: Dict[int, ChannelStats] = field(default_factory=dict)

    # Coverage
    first_packet: Optional[Timestamp] = None
    last_packet: Optional[Timestamp] = None
    missing_seconds: int = 0

    # Classification, split by source selector
    earth_view: PacketTypeCounts = field(default_factory=PacketTypeCounts)
    calibration: PacketTypeCounts = field(default_factory=PacketTypeCounts)

    # Stream health
    resyncs: int = 0
    truncated: bool = False

    def sorted_channels(self):
        """Channel stats ordered by channel id."""
        return [self.channels[apid] for apid in sorted(self.channels)]

    @property
    def total_packets(self) -> int:
        return sum(ch.count for ch in self.channels.values())

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "source": self.source,
            "channels": {str(ch.apid): ch.to_dict() for ch in self.sorted_channels()},
            "first_packet": self.first_packet._asdict() if self.first_packet else None,
            "last_packet": self.last_packet._asdict() if self.last_packet else None,
            "missing_seconds": self.missing_seconds,
            "earth_view": asdict(self.earth_view),
            "calibration": asdict(self.calibration),
            "resyncs": self.resyncs,
            "truncated": self.truncated,
        }

    def to_json(self) -> str:
        """Serialize to JSON."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "CaptureStats":
        """Deserialize from JSON."""
        data = json.loads(json_str)

        result = cls(
            version=data.get("version", "1.0.0"),
            source=data.get("source", ""),
            missing_seconds=data.get("missing_seconds", 0),
            resyncs=data.get("resyncs", 0),
            truncated=data.get("truncated", False),
        )

        for ch_data in data.get("channels", {}).values():
            ch = ChannelStats(**ch_data)
            result.channels[ch.apid] = ch

        if data.get("first_packet"):
            result.first_packet = Timestamp(**data["first_packet"])
        if data.get("last_packet"):
            result.last_packet = Timestamp(**data["last_packet"])

        result.earth_view = PacketTypeCounts(**data.get("earth_view", {}))
        result.calibration = PacketTypeCounts(**data.get("calibration", {}))

        return result


class RejectReason(str, Enum):
    """Why the merger discarded a packet from a source."""
    CHANNEL = "channel"
    SHORT_PAYLOAD = "short_payload"
    CHECKSUM = "checksum"
    WINDOW = "window"


@dataclass
class SourceMergeStats:
    """Per-input counters collected by the stream merger."""
    name: str
    accepted: int = 0
    resyncs: int = 0
    rejected: Dict[str, int] = field(default_factory=dict)

    def reject(self, reason: RejectReason) -> None:
        self.rejected[reason.value] = self.rejected.get(reason.value, 0) + 1

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MergeResult:
    """Outcome of one merge run."""
    apid: int
    window: TimeWindow
    emitted: int = 0
    duplicates: int = 0        # identical packets held by two sources at once
    out_of_order: int = 0      # rejected by the output monotonicity guard
    sources: List[SourceMergeStats] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "apid": self.apid,
            "window": {"start": list(self.window.start), "end": list(self.window.end)},
            "emitted": self.emitted,
            "duplicates": self.duplicates,
            "out_of_order": self.out_of_order,
            "sources": [s.to_dict() for s in self.sources],
        }

    def to_json(self) -> str:
        """Serialize to JSON."""
        return json.dumps(self.to_dict(), indent=2)
