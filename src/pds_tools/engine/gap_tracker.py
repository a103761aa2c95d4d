"""
Sequence Gap Tracker - missing and duplicated packets per channel

Each channel id carries its own 14-bit sequence count. Between two
consecutive packets of a channel,

    missing = (current - last - 1) mod 16384

A result of 16383 means the same count arrived twice. That is flagged as a
probable duplicate and does not count as 16383 missing packets.

The tracker also sums the whole seconds elapsed between consecutive
timestamped packets ("missing seconds"), taking day rollover into account.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..codec.calendar import MS_PER_DAY
from ..codec.sequence import DUPLICATE_DISTANCE, missing_between
from ..interfaces.packet_records import ChannelStats, Timestamp

logger = logging.getLogger(__name__)


@dataclass
class SequenceEvent:
    """Result of observing one packet on a channel."""
    apid: int
    sequence_count: int
    first: bool = False
    missing: int = 0
    duplicate: bool = False


class SequenceGapTracker:
    """Per-channel sequence count state machine: no packets yet, then tracking."""

    def __init__(self):
        self.channels: Dict[int, ChannelStats] = {}
        self.missing_seconds = 0
        self._last_time: Optional[Timestamp] = None

    def channel(self, apid: int) -> ChannelStats:
        """Stats record for a channel, created on first sighting."""
        stats = self.channels.get(apid)
        if stats is None:
            stats = ChannelStats(apid=apid)
            self.channels[apid] = stats
            logger.debug(f"New channel: APID {apid}")
        return stats

    def observe(self, apid: int, sequence_count: int) -> SequenceEvent:
        """Account for one packet with a valid primary header."""
        stats = self.channel(apid)
        stats.count += 1
        event = SequenceEvent(apid=apid, sequence_count=sequence_count)

        if stats.last_sequence_count == -1:
            event.first = True
        else:
            missing = missing_between(stats.last_sequence_count, sequence_count)
            if missing == DUPLICATE_DISTANCE:
                event.duplicate = True
                stats.duplicates += 1
                logger.warning(f"APID {apid}: duplicated packet (sequence count {sequence_count})")
            else:
                event.missing = missing
                stats.missing += missing

        stats.last_sequence_count = sequence_count
        return event

    def observe_time(self, timestamp: Timestamp) -> int:
        """
        Add the whole seconds since the previous timestamped packet.

        Returns:
            Seconds added by this packet (0 for the first one)
        """
        added = 0
        if self._last_time is not None:
            diff_ms = (
                (timestamp.day - self._last_time.day) * MS_PER_DAY
                + timestamp.millisecond - self._last_time.millisecond
            )
            added = diff_ms // 1000
            self.missing_seconds += added
        self._last_time = timestamp
        return added
