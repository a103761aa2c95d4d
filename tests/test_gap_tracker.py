"""
Unit tests for SequenceGapTracker.
"""


class TestSequenceGapTracker:
    """Test per-channel missing and duplicate accounting."""

    def test_first_packet_of_channel(self):
        from pds_tools.engine.gap_tracker import SequenceGapTracker

        tracker = SequenceGapTracker()
        event = tracker.observe(64, 100)

        assert event.first
        assert event.missing == 0
        assert tracker.channels[64].count == 1
        assert tracker.channels[64].last_sequence_count == 100

    def test_consecutive_counts(self):
        from pds_tools.engine.gap_tracker import SequenceGapTracker

        tracker = SequenceGapTracker()
        for seq in range(10, 20):
            tracker.observe(64, seq)

        assert tracker.channels[64].count == 10
        assert tracker.channels[64].missing == 0

    def test_gap_counted(self):
        from pds_tools.engine.gap_tracker import SequenceGapTracker

        tracker = SequenceGapTracker()
        tracker.observe(64, 10)
        event = tracker.observe(64, 14)

        assert event.missing == 3
        assert tracker.channels[64].missing == 3

    def test_gap_across_wrap(self):
        from pds_tools.engine.gap_tracker import SequenceGapTracker

        tracker = SequenceGapTracker()
        tracker.observe(64, 16382)
        tracker.observe(64, 16383)
        tracker.observe(64, 0)
        tracker.observe(64, 3)

        assert tracker.channels[64].missing == 2

    def test_duplicate_not_counted_as_missing(self):
        """A repeated count is a duplicate, never 16383 missing packets."""
        from pds_tools.engine.gap_tracker import SequenceGapTracker

        tracker = SequenceGapTracker()
        tracker.observe(64, 5)
        event = tracker.observe(64, 5)

        assert event.duplicate
        assert tracker.channels[64].duplicates == 1
        assert tracker.channels[64].missing == 0
        assert tracker.channels[64].count == 2

    def test_channels_independent(self):
        from pds_tools.engine.gap_tracker import SequenceGapTracker

        tracker = SequenceGapTracker()
        tracker.observe(64, 0)
        tracker.observe(65, 500)
        tracker.observe(64, 1)
        tracker.observe(65, 502)

        assert tracker.channels[64].missing == 0
        assert tracker.channels[65].missing == 1
        assert sorted(tracker.channels) == [64, 65]

    def test_full_cycle_without_gaps(self):
        """Counts 0..16383 followed by 0 again: no missing, no duplicates."""
        from pds_tools.engine.gap_tracker import SequenceGapTracker

        tracker = SequenceGapTracker()
        for seq in list(range(16384)) + [0]:
            tracker.observe(64, seq)

        assert tracker.channels[64].missing == 0
        assert tracker.channels[64].duplicates == 0
        assert tracker.channels[64].count == 16385


class TestMissingSeconds:
    """Test whole seconds summed between consecutive timestamps."""

    def test_first_timestamp_adds_nothing(self):
        from pds_tools.engine.gap_tracker import SequenceGapTracker
        from pds_tools.interfaces.packet_records import Timestamp

        tracker = SequenceGapTracker()
        assert tracker.observe_time(Timestamp(100, 5000, 0)) == 0
        assert tracker.missing_seconds == 0

    def test_whole_seconds_floor(self):
        from pds_tools.engine.gap_tracker import SequenceGapTracker
        from pds_tools.interfaces.packet_records import Timestamp

        tracker = SequenceGapTracker()
        tracker.observe_time(Timestamp(100, 0, 0))
        assert tracker.observe_time(Timestamp(100, 2999, 0)) == 2
        assert tracker.observe_time(Timestamp(100, 3500, 0)) == 0
        assert tracker.missing_seconds == 2

    def test_day_rollover(self):
        from pds_tools.engine.gap_tracker import SequenceGapTracker
        from pds_tools.interfaces.packet_records import Timestamp

        tracker = SequenceGapTracker()
        tracker.observe_time(Timestamp(100, 86399000, 0))
        assert tracker.observe_time(Timestamp(101, 1000, 0)) == 2
