"""
Exception hierarchy for pds-tools.

Decode problems that the tools recover from (structural resync) are raised
by the codecs and handled in the packet reader. Everything else propagates
to the command line layer, which maps it to an exit status.
"""

from typing import Optional


class PDSError(Exception):
    """Base class for all pds-tools errors."""


class StructuralDecodeError(PDSError):
    """
    Primary header carries a version other than 0.

    The frame is treated as corrupted. The declared length field is kept
    so the reader can skip the frame and try to resynchronise.
    """

    def __init__(self, version: int, length_field: int):
        super().__init__(f"unsupported packet version ({version})")
        self.version = version
        self.length_field = length_field


class PayloadTooShortError(PDSError, ValueError):
    """Payload cannot hold the instrument header and trailing checksum."""

    def __init__(self, length: int, minimum: int):
        super().__init__(f"payload of {length} bytes is shorter than {minimum} bytes")
        self.length = length
        self.minimum = minimum


class TruncatedReadError(PDSError):
    """Fewer bytes were available than the frame declared."""

    def __init__(self, source: str, expected: int, received: int):
        super().__init__(
            f"truncated read in {source}: expected {expected} bytes, got {received}"
        )
        self.source = source
        self.expected = expected
        self.received = received


class ResourceError(PDSError):
    """Input could not be opened, output could not be created, or a frame is too large."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class NoPacketsError(PDSError):
    """Capture did not contain a single decodable packet."""


class UsageError(PDSError):
    """Invalid command line arguments."""
