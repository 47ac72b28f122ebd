"""Formato de bytes y velocidades para la capa de presentación.

Unidades base 1024. Las velocidades se muestran en bits por segundo.
"""

from __future__ import annotations

from typing import Sequence

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")
SPEED_UNITS = ("bps", "Kbps", "Mbps", "Gbps", "Tbps")
UNIT_THRESHOLD = 1024.0


def _format_value(value: int, units: Sequence[str]) -> str:
    display = float(abs(value))
    unit_index = 0

    while display >= UNIT_THRESHOLD and unit_index < len(units) - 1:
        display /= UNIT_THRESHOLD
        unit_index += 1

    if display >= 10:
        text = f"{display:.0f}"
    else:
        text = f"{display:.1f}"
        if text.endswith(".0"):
            text = text[:-2]

    sign = "-" if value < 0 else ""
    return f"{sign}{text} {units[unit_index]}"


def format_bytes(num_bytes: int) -> str:
    """'1.5 MB' style rendering of a byte count."""
    if num_bytes == 0:
        return "0 B"
    return _format_value(int(num_bytes), SIZE_UNITS)


def format_speed(bytes_per_second: int) -> str:
    """'12 Mbps' style rendering; input is bytes/s, output is bits/s."""
    if bytes_per_second == 0:
        return "0 bps"
    return _format_value(int(bytes_per_second) * 8, SPEED_UNITS)
