"""Output adapters - atomic file writing and the statistics report."""

from .atomic_writer import AtomicFileWriter, write_text_atomic
from .stats_report import format_capture_report

__all__ = ['AtomicFileWriter', 'write_text_atomic', 'format_capture_report']
