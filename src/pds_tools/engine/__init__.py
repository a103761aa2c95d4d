"""Processing engines - capture reading, statistics and the stream merge.

Contains:
- PacketReader: frame reader with structural resynchronisation
- SequenceGapTracker: per-channel missing/duplicate accounting
- CaptureAnalyzer: statistics over one capture
- TemporalStreamMerger: N-way time ordered merge
"""

from .packet_reader import PacketReader, open_capture
from .gap_tracker import SequenceGapTracker
from .capture_stats import CaptureAnalyzer
from .stream_merger import TemporalStreamMerger, MergeCursor, CursorState

__all__ = [
    'PacketReader',
    'open_capture',
    'SequenceGapTracker',
    'CaptureAnalyzer',
    'TemporalStreamMerger',
    'MergeCursor',
    'CursorState',
]
