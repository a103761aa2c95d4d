"""
Unit tests for TemporalStreamMerger.

Inputs are in-memory captures built with the frame factory; timestamps are
given as milliseconds of day 100 unless a test needs otherwise.
"""

import io

import pytest


def _merge(readers, apid=64, window=None):
    """Run a merge, returning (emitted packets, MergeResult)."""
    from pds_tools.engine.stream_merger import TemporalStreamMerger

    merger = TemporalStreamMerger(readers, apid=apid, window=window)
    packets = list(merger.merge())
    return packets, merger.result


def _keys(packets):
    return [(p.timestamp.millisecond, p.sequence_count) for p in packets]


class TestComparePackets:
    """Test the packet order used by the merge."""

    def test_timestamp_dominates(self, frame_factory, reader_factory):
        from pds_tools.engine.stream_merger import compare_packets
        from pds_tools.codec.packet import decode_instrument_packet

        early = decode_instrument_packet(reader_factory([frame_factory(seq=500, millisecond=0)]).read_packet())
        late = decode_instrument_packet(reader_factory([frame_factory(seq=1, millisecond=1)]).read_packet())

        assert compare_packets(early, late) < 0
        assert compare_packets(late, early) > 0

    def test_sequence_breaks_ties_across_wrap(self, frame_factory, reader_factory):
        from pds_tools.engine.stream_merger import compare_packets
        from pds_tools.codec.packet import decode_instrument_packet

        before = decode_instrument_packet(reader_factory([frame_factory(seq=16383)]).read_packet())
        after = decode_instrument_packet(reader_factory([frame_factory(seq=0)]).read_packet())

        assert compare_packets(before, after) < 0
        assert compare_packets(after, before) > 0
        assert compare_packets(before, before) == 0

    def test_half_range_tie_antisymmetric(self, frame_factory, reader_factory):
        from pds_tools.engine.stream_merger import compare_packets
        from pds_tools.codec.packet import decode_instrument_packet

        low = decode_instrument_packet(reader_factory([frame_factory(seq=0)]).read_packet())
        high = decode_instrument_packet(reader_factory([frame_factory(seq=8192)]).read_packet())

        assert compare_packets(high, low) < 0
        assert compare_packets(low, high) > 0


class TestMergeCursor:
    """Test the per-input cursor state machine."""

    def test_release_without_packet(self, reader_factory):
        from pds_tools.engine.stream_merger import MergeCursor
        from pds_tools.interfaces.packet_records import SourceMergeStats

        cursor = MergeCursor(index=0, reader=reader_factory([]), stats=SourceMergeStats(name="a"))
        with pytest.raises(RuntimeError):
            cursor.release()

    def test_hold_and_release(self, frame_factory, reader_factory):
        from pds_tools.codec.packet import decode_instrument_packet
        from pds_tools.engine.stream_merger import CursorState, MergeCursor
        from pds_tools.interfaces.packet_records import SourceMergeStats

        reader = reader_factory([frame_factory()])
        packet = decode_instrument_packet(reader.read_packet())
        cursor = MergeCursor(index=0, reader=reader, stats=SourceMergeStats(name="a"))

        cursor.hold(packet)
        assert cursor.state is CursorState.HOLDING
        assert cursor.release() is packet
        assert cursor.state is CursorState.EMPTY
        assert cursor.packet is None


class TestTemporalStreamMerger:
    """Test merging of overlapping captures."""

    def test_overlapping_captures(self, frame_factory, reader_factory):
        a = reader_factory([frame_factory(seq=i, millisecond=i * 1000) for i in (0, 1, 2)], name="a")
        b = reader_factory([frame_factory(seq=i, millisecond=i * 1000) for i in (1, 2, 3)], name="b")

        packets, result = _merge([a, b])

        assert _keys(packets) == [(0, 0), (1000, 1), (2000, 2), (3000, 3)]
        assert result.emitted == 4
        assert result.duplicates == 2
        assert result.out_of_order == 0
        assert [s.accepted for s in result.sources] == [3, 3]

    def test_interleaved_captures(self, frame_factory, reader_factory):
        a = reader_factory([frame_factory(seq=i, millisecond=i * 1000) for i in (0, 2, 4)])
        b = reader_factory([frame_factory(seq=i, millisecond=i * 1000) for i in (1, 3, 5)])

        packets, result = _merge([a, b])

        assert [p.sequence_count for p in packets] == [0, 1, 2, 3, 4, 5]
        assert result.duplicates == 0

    def test_same_capture_twice_equals_once(self, frame_factory, reader_factory):
        frames = [frame_factory(seq=i, millisecond=i * 500) for i in range(6)]

        once, _ = _merge([reader_factory(frames)])
        twice, result = _merge([reader_factory(frames), reader_factory(frames)])

        assert [p.frame for p in twice] == [p.frame for p in once]
        assert result.duplicates == 6

    def test_frames_emitted_unmodified(self, frame_factory, reader_factory):
        frames = [frame_factory(seq=i, millisecond=i * 1000) for i in range(3)]
        packets, _ = _merge([reader_factory(frames)])
        assert [p.frame for p in packets] == frames

    def test_equal_timestamps_ordered_by_sequence(self, frame_factory, reader_factory):
        """Sequence count orders equal timestamps, including across the wrap."""
        a = reader_factory([frame_factory(seq=0, millisecond=1000)])
        b = reader_factory([frame_factory(seq=16383, millisecond=1000)])

        packets, _ = _merge([a, b])

        assert [p.sequence_count for p in packets] == [16383, 0]

    def test_out_of_order_dropped(self, frame_factory, reader_factory):
        """Output is strictly increasing; a packet older than the last output is dropped."""
        frames = [
            frame_factory(seq=0, millisecond=0),
            frame_factory(seq=2, millisecond=2000),
            frame_factory(seq=1, millisecond=1000),
            frame_factory(seq=3, millisecond=3000),
        ]
        packets, result = _merge([reader_factory(frames)])

        assert _keys(packets) == [(0, 0), (2000, 2), (3000, 3)]
        assert result.out_of_order == 1

    def test_filters(self, frame_factory, reader_factory):
        """Other channels, short payloads and bad checksums are rejected per source."""
        from pds_tools.codec.packet import encode_frame

        frames = [
            frame_factory(apid=65, seq=0, millisecond=0),
            encode_frame(64, 1, bytes(10)),
            frame_factory(seq=2, millisecond=2000, corrupt_checksum=True),
            frame_factory(seq=3, millisecond=3000),
        ]
        packets, result = _merge([reader_factory(frames)])

        assert _keys(packets) == [(3000, 3)]
        assert result.sources[0].rejected == {"channel": 1, "short_payload": 1, "checksum": 1}
        assert result.sources[0].accepted == 1

    def test_time_window(self, frame_factory, reader_factory):
        """Window is half-open on (day, millisecond)."""
        from pds_tools.interfaces.packet_records import TimeWindow

        frames = [frame_factory(seq=i, millisecond=i * 1000) for i in range(4)]
        window = TimeWindow(start=(100, 1000), end=(100, 3000))

        packets, result = _merge([reader_factory(frames)], window=window)

        assert _keys(packets) == [(1000, 1), (2000, 2)]
        assert result.sources[0].rejected == {"window": 2}

    def test_window_across_days(self, frame_factory, reader_factory):
        from pds_tools.interfaces.packet_records import TimeWindow

        frames = [
            frame_factory(seq=0, days=100, millisecond=86399000),
            frame_factory(seq=1, days=101, millisecond=0),
            frame_factory(seq=2, days=101, millisecond=1000),
        ]
        window = TimeWindow(start=(101, 0), end=(101, 1000))

        packets, _ = _merge([reader_factory(frames)], window=window)

        assert [p.sequence_count for p in packets] == [1]

    def test_empty_inputs(self, reader_factory):
        packets, result = _merge([reader_factory([]), reader_factory([])])
        assert packets == []
        assert result.emitted == 0

    def test_resyncs_recorded(self, frame_factory, reader_factory, corrupted_frame):
        frames = [frame_factory(seq=0), corrupted_frame, frame_factory(seq=1, millisecond=1000)]
        packets, result = _merge([reader_factory(frames)])

        assert len(packets) == 2
        assert result.sources[0].resyncs == 1

    def test_truncated_input_propagates(self, frame_factory, reader_factory):
        from pds_tools.errors import TruncatedReadError

        frames = [frame_factory(seq=0), frame_factory(seq=1, millisecond=1000)[:-2]]
        with pytest.raises(TruncatedReadError):
            _merge([reader_factory(frames)])

    def test_merge_into_writer(self, frame_factory, reader_factory):
        from pds_tools.engine.stream_merger import TemporalStreamMerger

        frames = [frame_factory(seq=i, millisecond=i * 1000) for i in range(3)]
        out = io.BytesIO()

        result = TemporalStreamMerger([reader_factory(frames)], apid=64).merge_into(out)

        assert out.getvalue() == b''.join(frames)
        assert result.emitted == 3

    def test_single_identical_packet_in_two_captures(self, frame_factory, reader_factory):
        frame = frame_factory(apid=70, seq=42, days=100, millisecond=0, microsecond=0)

        packets, result = _merge([reader_factory([frame]), reader_factory([frame])], apid=70)

        assert [p.frame for p in packets] == [frame]
        assert result.duplicates == 1

    def test_half_range_tie_independent_of_input_order(self, frame_factory, reader_factory):
        """Counts 8192 apart at one timestamp merge the same way whichever input holds which."""
        low = frame_factory(seq=0, millisecond=1000)
        high = frame_factory(seq=8192, millisecond=1000)

        forward, result = _merge([reader_factory([low]), reader_factory([high])])
        backward, _ = _merge([reader_factory([high]), reader_factory([low])])

        assert [p.sequence_count for p in forward] == [8192, 0]
        assert [p.sequence_count for p in backward] == [8192, 0]
        assert result.out_of_order == 0
