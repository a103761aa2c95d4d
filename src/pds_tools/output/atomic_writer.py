"""
Atomic File Writer for pds-tools

Merged captures and JSON reports are written to a temp file in the target
directory and renamed into place only when writing finished cleanly. A run
that fails part way (truncated input, write error) leaves no partial output
behind.

Usage:
    with AtomicFileWriter('merged.pds') as writer:
        writer.write(frame)
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..errors import ResourceError

logger = logging.getLogger(__name__)


class AtomicFileWriter:
    """
    Binary writer that publishes its file atomically.

    The temp file is created on enter; on a clean exit it is renamed over
    the target path, on an exception it is removed.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Args:
            path: Final output path
        """
        self.path = Path(path)
        self.bytes_written = 0
        self.frames_written = 0
        self._file = None
        self._temp_path: Optional[str] = None

    def open(self) -> "AtomicFileWriter":
        """
        Create the temp file next to the target.

        Raises:
            ResourceError: output cannot be created
        """
        try:
            fd, self._temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f'.{self.path.name}_',
                suffix='.tmp'
            )
        except OSError as e:
            raise ResourceError(
                f"can't create output file ({self.path}): {e.strerror}", str(self.path)
            ) from e
        self._file = os.fdopen(fd, 'wb')
        logger.debug(f"Writing {self.path} via {self._temp_path}")
        return self

    def write(self, data: bytes) -> int:
        """Append one frame (or any byte string) to the output."""
        if self._file is None:
            raise RuntimeError(f"{self.path} is not open for writing")
        self._file.write(data)
        self.bytes_written += len(data)
        self.frames_written += 1
        return len(data)

    def commit(self) -> None:
        """Close the temp file and rename it into place."""
        self._file.close()
        self._file = None
        os.replace(self._temp_path, self.path)
        self._temp_path = None
        logger.info(f"Wrote {self.path}: {self.frames_written} frames, {self.bytes_written} bytes")

    def abort(self) -> None:
        """Close and delete the temp file; the target path is left untouched."""
        if self._file is not None:
            self._file.close()
            self._file = None
        if self._temp_path and os.path.exists(self._temp_path):
            os.unlink(self._temp_path)
            logger.warning(f"Discarded partial output for {self.path}")
        self._temp_path = None

    def __enter__(self) -> "AtomicFileWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.abort()


def write_text_atomic(path: Union[str, Path], text: str) -> None:
    """Write a text report (JSON statistics) atomically."""
    with AtomicFileWriter(path) as writer:
        writer.write(text.encode('utf-8'))
