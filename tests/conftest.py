"""
Pytest configuration and fixtures for pds-tools tests.

Captures are synthesised with the package's own frame builders, either in
memory (io.BytesIO) or as files under tmp_path.
"""

import io
import pytest
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from pds_tools.codec.packet import build_instrument_frame, encode_frame
from pds_tools.engine.packet_reader import PacketReader
from pds_tools.interfaces.packet_records import InstrumentHeader, PacketType, SourceKind

# Four bytes of packed samples keep the checksum field on a sample boundary
SAMPLE_DATA = b'\x12\x34\x56\x78'


def make_instrument_header(
    days=100,
    millisecond=0,
    microsecond=0,
    packet_type=PacketType.DAY,
    source=SourceKind.EARTH_VIEW,
    sample_id=1,
    **kwargs
):
    fields = dict(
        days=days,
        millisecond=millisecond,
        microsecond=microsecond,
        quicklook=0,
        packet_type=packet_type,
        scan_count=0,
        mirror_side=0,
        source=source,
        sample_id=sample_id,
        configuration=0,
        science_state=0,
        science_abnormal=0,
    )
    fields.update(kwargs)
    return InstrumentHeader(**fields)


def make_frame(
    apid=64,
    seq=0,
    days=100,
    millisecond=0,
    microsecond=0,
    data=SAMPLE_DATA,
    corrupt_checksum=False,
    **header_fields
):
    """One instrument frame with a valid checksum unless asked otherwise."""
    header = make_instrument_header(days, millisecond, microsecond, **header_fields)
    return build_instrument_frame(apid, seq, header, data, corrupt_checksum)


def make_reader(frames, name="<test>", **kwargs):
    return PacketReader(io.BytesIO(b''.join(frames)), name=name, **kwargs)


@pytest.fixture
def frame_factory():
    """Build instrument frames: frame_factory(apid=64, seq=0, days=100, millisecond=0, ...)."""
    return make_frame


@pytest.fixture
def reader_factory():
    """Wrap a list of frames in a PacketReader over an in-memory stream."""
    return make_reader


@pytest.fixture
def corrupted_frame():
    """Frame with version 1 in its primary header and a trustworthy length field."""
    return encode_frame(64, 0, b'\xAA' * 20, version=1)


@pytest.fixture
def write_capture(tmp_path):
    """Write frames to a capture file under tmp_path and return its path."""
    def _write(name, frames):
        path = tmp_path / name
        path.write_bytes(b''.join(frames))
        return path
    return _write
