"""
Temporal Stream Merger - N captures in, one ordered capture out

================================================================================
PURPOSE
================================================================================
Several ground stations (or several passes) often record overlapping parts
of the same downlink. The merger combines such captures into one stream
that is:
    1. restricted to one instrument channel (APID)
    2. restricted to a time window [start, end)
    3. strictly increasing in packet order
    4. free of duplicates

================================================================================
PACKET ORDER
================================================================================
Primary key is the instrument timestamp (day, millisecond, microsecond).
Packets with equal timestamps are ordered by sequence count, compared with
modulo-16384 signed distance so the order survives counter wraparound.
Counts exactly 8192 apart are settled by their raw difference, so the
order stays antisymmetric.

================================================================================
PER-SOURCE CURSOR
================================================================================
Each input has a cursor in one of three states:

    EMPTY ──advance──▶ HOLDING ──consume──▶ EMPTY
      │
      └──end of input──▶ EXHAUSTED

Advancing reads frames until one passes every filter: channel id, payload
length, checksum, time window. Rejected frames are counted and dropped.

================================================================================
MERGE STEP
================================================================================
    1. Advance every EMPTY cursor.
    2. Pick the oldest HOLDING packet. A later cursor holding a packet that
       is identical under the packet order is a duplicate: it is dropped and
       that cursor goes back to EMPTY.
    3. Output guard: the pick is emitted only if it comes strictly after the
       last emitted packet, otherwise it is dropped.
    4. Stop when no cursor is HOLDING.

The emitted frame is the original byte string, unmodified.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterator, List, Optional, Sequence

from ..codec.packet import decode_instrument_packet
from ..codec.sequence import sequence_order
from ..errors import PayloadTooShortError
from ..interfaces.packet_records import (
    InstrumentPacket,
    MergeResult,
    RejectReason,
    SourceMergeStats,
    TimeWindow,
)
from .packet_reader import PacketReader

logger = logging.getLogger(__name__)


class CursorState(Enum):
    """State of one input in the merge."""
    EMPTY = "empty"            # needs advancing
    HOLDING = "holding"        # has a valid packet waiting to be merged
    EXHAUSTED = "exhausted"    # end of input reached


def compare_packets(a: InstrumentPacket, b: InstrumentPacket) -> int:
    """
    Order two packets.

    Returns:
        Negative if a comes before b, 0 if identical in order, positive if after
    """
    if a.timestamp != b.timestamp:
        return -1 if a.timestamp < b.timestamp else 1
    return sequence_order(a.sequence_count, b.sequence_count)


@dataclass
class MergeCursor:
    """Read position and held packet of one input."""
    index: int
    reader: PacketReader
    stats: SourceMergeStats
    state: CursorState = CursorState.EMPTY
    packet: Optional[InstrumentPacket] = None

    def hold(self, packet: InstrumentPacket) -> None:
        self.state = CursorState.HOLDING
        self.packet = packet

    def release(self) -> InstrumentPacket:
        """Hand over the held packet and go back to EMPTY."""
        if self.state is not CursorState.HOLDING:
            raise RuntimeError(f"cursor {self.index} holds no packet ({self.state.value})")
        packet = self.packet
        self.state = CursorState.EMPTY
        self.packet = None
        return packet

    def exhaust(self) -> None:
        self.state = CursorState.EXHAUSTED
        self.packet = None


class TemporalStreamMerger:
    """
    Merge several captures of one instrument channel.

    Usage:
        readers = [open_capture(p) for p in inputs]
        merger = TemporalStreamMerger(readers, apid=64, window=window)
        with AtomicFileWriter(output) as writer:
            result = merger.merge_into(writer)

    A TruncatedReadError from any input propagates out of merge(); the
    caller is expected to discard the partial output.
    """

    def __init__(
        self,
        sources: Sequence[PacketReader],
        apid: int,
        window: Optional[TimeWindow] = None,
    ):
        """
        Args:
            sources: Readers in priority order (earlier wins on duplicates)
            apid: Channel id to keep
            window: Time window to keep (default: unbounded)
        """
        self.apid = apid
        self.window = window or TimeWindow.unbounded()
        self.cursors: List[MergeCursor] = [
            MergeCursor(index=i, reader=reader, stats=SourceMergeStats(name=reader.name))
            for i, reader in enumerate(sources)
        ]
        self.result = MergeResult(
            apid=apid,
            window=self.window,
            sources=[cursor.stats for cursor in self.cursors],
        )
        self._last_emitted: Optional[InstrumentPacket] = None

    def _advance(self, cursor: MergeCursor) -> None:
        """Read from one input until a packet passes every filter or input ends."""
        while True:
            raw = cursor.reader.read_packet()
            cursor.stats.resyncs = cursor.reader.resyncs

            if raw is None:
                cursor.exhaust()
                logger.info(
                    f"{cursor.stats.name}: exhausted after {cursor.reader.packets_read} packets "
                    f"({cursor.stats.accepted} accepted)"
                )
                return

            if raw.header.apid != self.apid:
                cursor.stats.reject(RejectReason.CHANNEL)
                continue

            try:
                packet = decode_instrument_packet(raw)
            except PayloadTooShortError as e:
                cursor.stats.reject(RejectReason.SHORT_PAYLOAD)
                logger.warning(f"{cursor.stats.name}: {e}")
                continue

            if not packet.checksum_ok:
                cursor.stats.reject(RejectReason.CHECKSUM)
                continue

            if not self.window.contains(packet.timestamp):
                cursor.stats.reject(RejectReason.WINDOW)
                continue

            cursor.stats.accepted += 1
            cursor.hold(packet)
            return

    def _select_oldest(self) -> Optional[MergeCursor]:
        """Oldest held packet; later cursors holding an identical packet are emptied."""
        oldest: Optional[MergeCursor] = None

        for cursor in self.cursors:
            if cursor.state is not CursorState.HOLDING:
                continue
            if oldest is None:
                oldest = cursor
                continue

            order = compare_packets(cursor.packet, oldest.packet)
            if order < 0:
                oldest = cursor
            elif order == 0:
                dropped = cursor.release()
                self.result.duplicates += 1
                logger.debug(
                    f"{cursor.stats.name}: duplicate of {oldest.stats.name} at "
                    f"{tuple(dropped.timestamp)} seq {dropped.sequence_count}"
                )

        return oldest

    def merge(self) -> Iterator[InstrumentPacket]:
        """Yield merged packets in strictly increasing order until every input is exhausted."""
        logger.info(
            f"Merging {len(self.cursors)} inputs: APID {self.apid}, "
            f"window {self.window.start} - {self.window.end}"
        )

        while True:
            for cursor in self.cursors:
                if cursor.state is CursorState.EMPTY:
                    self._advance(cursor)

            oldest = self._select_oldest()
            if oldest is None:
                break

            packet = oldest.release()
            if self._last_emitted is not None and compare_packets(packet, self._last_emitted) <= 0:
                self.result.out_of_order += 1
                logger.debug(
                    f"{oldest.stats.name}: dropped packet at {tuple(packet.timestamp)} "
                    f"seq {packet.sequence_count}, not after last emitted"
                )
                continue

            self._last_emitted = packet
            self.result.emitted += 1
            yield packet

        logger.info(
            f"Merge complete: {self.result.emitted} emitted, "
            f"{self.result.duplicates} duplicates, {self.result.out_of_order} out of order"
        )

    def merge_into(self, writer: BinaryIO) -> MergeResult:
        """Write every merged frame to writer and return the merge counters."""
        for packet in self.merge():
            writer.write(packet.frame)
        return self.result
