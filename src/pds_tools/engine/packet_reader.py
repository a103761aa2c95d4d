"""
Packet Reader - frames from a binary capture

Reads one frame at a time from a file object: 6-byte primary header, then
the declared payload. Frames with an unsupported version are skipped by
their own declared length (best-effort resynchronisation, which trusts the
corrupted frame's length field) and the next frame is tried.

End of input exactly on a frame boundary ends the stream. Any shorter read
is a truncation and raises TruncatedReadError.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from ..codec.primary_header import PRIMARY_HEADER_SIZE, decode_primary_header
from ..errors import ResourceError, StructuralDecodeError, TruncatedReadError
from ..interfaces.packet_records import RawPacket

logger = logging.getLogger(__name__)

# Largest payload accepted unless configured otherwise
DEFAULT_MAX_PAYLOAD_SIZE = 100000


class PacketReader:
    """
    Sequential frame reader for one capture.

    Usage:
        with open_capture('capture.pds') as reader:
            for packet in reader:
                print(packet.header.apid, packet.header.sequence_count)
    """

    def __init__(
        self,
        stream: BinaryIO,
        name: str = "<stream>",
        max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE,
    ):
        """
        Args:
            stream: Binary file object positioned at a frame boundary
            name: Name used in log messages and errors
            max_payload_size: Largest payload accepted, in bytes
        """
        self.stream = stream
        self.name = name
        self.max_payload_size = max_payload_size

        self.packets_read = 0
        self.resyncs = 0
        self.bytes_read = 0

    def _read_exact(self, size: int) -> bytes:
        data = self.stream.read(size)
        self.bytes_read += len(data)
        if len(data) != size:
            raise TruncatedReadError(self.name, size, len(data))
        return data

    def _check_payload_size(self, payload_length: int) -> None:
        if payload_length > self.max_payload_size:
            raise ResourceError(
                f"payload of {payload_length} bytes in {self.name} exceeds "
                f"buffer size {self.max_payload_size}"
            )

    def read_packet(self) -> Optional[RawPacket]:
        """
        Read the next structurally valid frame.

        Returns:
            RawPacket, or None at a clean end of input

        Raises:
            TruncatedReadError: input ends inside a frame
            ResourceError: declared payload exceeds max_payload_size
        """
        while True:
            header_bytes = self.stream.read(PRIMARY_HEADER_SIZE)
            self.bytes_read += len(header_bytes)
            if not header_bytes:
                return None
            if len(header_bytes) != PRIMARY_HEADER_SIZE:
                raise TruncatedReadError(self.name, PRIMARY_HEADER_SIZE, len(header_bytes))

            try:
                header = decode_primary_header(header_bytes)
            except StructuralDecodeError as e:
                self.resyncs += 1
                logger.warning(
                    f"{self.name}: {e} at byte {self.bytes_read - PRIMARY_HEADER_SIZE}: "
                    f"file might be corrupted, trying to resynchronise"
                )
                skip = e.length_field + 1
                self._check_payload_size(skip)
                self._read_exact(skip)
                continue

            self._check_payload_size(header.payload_length)
            payload = self._read_exact(header.payload_length)
            self.packets_read += 1
            return RawPacket(header=header, frame=header_bytes + payload)

    def __iter__(self) -> Iterator[RawPacket]:
        while True:
            packet = self.read_packet()
            if packet is None:
                return
            yield packet

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "PacketReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_capture(
    path: Union[str, Path],
    max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE,
) -> PacketReader:
    """
    Open a capture file for reading.

    Raises:
        ResourceError: file cannot be opened
    """
    path = Path(path)
    try:
        stream = open(path, 'rb')
    except OSError as e:
        raise ResourceError(f"can't open input file ({path}): {e.strerror}", str(path)) from e
    logger.debug(f"Opened capture {path}")
    return PacketReader(stream, name=str(path), max_payload_size=max_payload_size)
