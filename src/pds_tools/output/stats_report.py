"""Human-readable statistics report."""

from typing import List

from ..codec.calendar import format_timestamp
from ..interfaces.packet_records import CaptureStats


def format_capture_report(stats: CaptureStats) -> str:
    """
    Render capture statistics the way `pds-tools info` prints them.

    Example:
        APID 64: count 8 invalid 0 missing 2
        first packet: 2009/03/24 10:15:00.000000
        last packet: 2009/03/24 10:15:07.000000
        missing seconds: 7
        day packets: 8/0
        night packets: 0/0
        engineering packets: 0/0
    """
    lines: List[str] = []

    for ch in stats.sorted_channels():
        line = f"APID {ch.apid}: count {ch.count} invalid {ch.invalid} missing {ch.missing}"
        if ch.duplicates:
            line += f" duplicated {ch.duplicates}"
        lines.append(line)

    first = format_timestamp(stats.first_packet) if stats.first_packet else "none"
    last = format_timestamp(stats.last_packet) if stats.last_packet else "none"
    lines.append(f"first packet: {first}")
    lines.append(f"last packet: {last}")
    lines.append(f"missing seconds: {stats.missing_seconds}")

    # earth view / calibration
    lines.append(f"day packets: {stats.earth_view.day}/{stats.calibration.day}")
    lines.append(f"night packets: {stats.earth_view.night}/{stats.calibration.night}")
    lines.append(
        f"engineering packets: {stats.earth_view.engineering}/{stats.calibration.engineering}"
    )

    if stats.resyncs:
        lines.append(f"resynchronisations: {stats.resyncs}")
    if stats.truncated:
        lines.append("capture truncated")

    return "\n".join(lines)
