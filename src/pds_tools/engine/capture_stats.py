"""
Capture Statistics - integrity and coverage of a single capture

Walks every frame of one capture and collects:
    - per-channel packet, invalid-checksum, missing and duplicate counts
    - first and last instrument packet time
    - whole seconds spanned between consecutive instrument packets
    - day / night / engineering counts, split by earth view and calibration

Only channels in the instrument range get their payload decoded; other
channels contribute sequence statistics only. Corruption is reported on the
log and the walk continues where possible. A truncated capture ends the
walk, and the statistics gathered so far are returned flagged as truncated.
"""

import logging
from typing import Optional, Sequence

from ..codec.packet import decode_instrument_packet
from ..errors import NoPacketsError, PayloadTooShortError, TruncatedReadError
from ..interfaces.packet_records import (
    CaptureStats,
    InstrumentHeader,
    RawPacket,
    SourceKind,
)
from .gap_tracker import SequenceEvent, SequenceGapTracker
from .packet_reader import PacketReader

logger = logging.getLogger(__name__)

# Channel ids carrying the instrument header
INSTRUMENT_APIDS = range(64, 128)


class CaptureAnalyzer:
    """
    Compute CaptureStats for one capture.

    Usage:
        analyzer = CaptureAnalyzer()
        with open_capture('capture.pds') as reader:
            stats = analyzer.analyze(reader)
        print(format_capture_report(stats))
    """

    def __init__(self, instrument_apids: Sequence[int] = INSTRUMENT_APIDS):
        self.instrument_apids = instrument_apids

    def analyze(self, reader: PacketReader) -> CaptureStats:
        """
        Walk a capture to its end.

        Raises:
            NoPacketsError: capture holds no decodable packet
        """
        stats = CaptureStats(source=reader.name)
        tracker = SequenceGapTracker()
        previous: Optional[InstrumentHeader] = None

        try:
            for raw in reader:
                event = tracker.observe(raw.header.apid, raw.header.sequence_count)
                if raw.header.apid in self.instrument_apids:
                    previous = self._account_instrument(raw, event, previous, stats, tracker)
        except TruncatedReadError as e:
            logger.error(f"{e}: file might be corrupted")
            stats.truncated = True

        stats.channels = tracker.channels
        stats.missing_seconds = tracker.missing_seconds
        stats.resyncs = reader.resyncs

        if not stats.channels:
            raise NoPacketsError(f"no valid packets found in {reader.name}")

        logger.info(
            f"{reader.name}: {stats.total_packets} packets in {len(stats.channels)} channels, "
            f"{reader.resyncs} resyncs"
        )
        return stats

    def _account_instrument(
        self,
        raw: RawPacket,
        event: SequenceEvent,
        previous: Optional[InstrumentHeader],
        stats: CaptureStats,
        tracker: SequenceGapTracker,
    ) -> Optional[InstrumentHeader]:
        """Decode and account one instrument packet; returns the header to remember."""
        channel = tracker.channel(raw.header.apid)

        try:
            packet = decode_instrument_packet(raw)
        except PayloadTooShortError as e:
            channel.invalid += 1
            logger.warning(f"APID {raw.header.apid}: {e}")
            return previous

        current = packet.instrument
        if event.duplicate and previous is not None:
            logger.warning(
                f"duplicated instrument packet: "
                f"{current.days}/{previous.days} "
                f"{current.millisecond}/{previous.millisecond} "
                f"{current.microsecond}/{previous.microsecond} "
                f"{current.sample_id}/{previous.sample_id}"
            )

        if not packet.checksum_ok:
            channel.invalid += 1
            logger.debug(
                f"APID {raw.header.apid} seq {raw.header.sequence_count}: checksum "
                f"{packet.computed_checksum:03x} != {current.checksum:03x}"
            )
            return current

        timestamp = current.timestamp
        if stats.first_packet is None or timestamp < stats.first_packet:
            stats.first_packet = timestamp
        if stats.last_packet is None or timestamp > stats.last_packet:
            stats.last_packet = timestamp
        tracker.observe_time(timestamp)

        if current.source == SourceKind.EARTH_VIEW:
            stats.earth_view.add(current.packet_type)
        else:
            stats.calibration.add(current.packet_type)

        return current
