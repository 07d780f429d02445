"""
Canvas Kernel: Color Codec

Hex color strings to normalized RGB. Malformed input maps to black.
Never raises.
"""

from __future__ import annotations

from typing import Any

from engine.kernel.types import BLACK, HEX_COLOR_PATTERN, RGB


def parse_hex_color(value: Any) -> tuple[RGB, bool]:
    """
    Parse "#RRGGBB" (leading "#" optional, any case).

    Returns (rgb, ok). ok is False when the input was malformed and
    black was substituted, so the caller can report the fallback.
    """
    if not isinstance(value, str):
        return BLACK, False

    match = HEX_COLOR_PATTERN.fullmatch(value)
    if match is None:
        return BLACK, False

    r, g, b = (int(channel, 16) / 255 for channel in match.groups())
    return RGB(r, g, b), True


def hex_to_rgb(value: Any) -> RGB:
    """Parse a hex color, black on malformed input."""
    rgb, _ = parse_hex_color(value)
    return rgb


def rgb_to_hex(rgb: RGB) -> str:
    """Inverse of hex_to_rgb, rounding each channel to the nearest byte."""
    r, g, b = (max(0, min(255, round(c * 255))) for c in (rgb.r, rgb.g, rgb.b))
    return f"#{r:02X}{g:02X}{b:02X}"
