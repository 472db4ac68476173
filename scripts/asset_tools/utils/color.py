"""
Color parsing helpers for configuration files and command-line options.
"""

from typing import Any, Sequence, Tuple


NAMED_COLORS = {
    "white": (1.0, 1.0, 1.0, 1.0),
    "black": (0.0, 0.0, 0.0, 1.0),
    "magenta": (1.0, 0.0, 1.0, 1.0),
    "red": (1.0, 0.0, 0.0, 1.0),
    "green": (0.0, 1.0, 0.0, 1.0),
    "blue": (0.0, 0.0, 1.0, 1.0),
}


def _parse_hex(code: str) -> Tuple[float, float, float, float]:
    s = code.strip().lstrip("#")
    if len(s) in (3, 4):
        s = "".join(c * 2 for c in s)
    if len(s) not in (6, 8):
        raise ValueError(f"Invalid hex color: {code!r}")

    try:
        channels = [int(s[i:i + 2], 16) / 255.0 for i in range(0, len(s), 2)]
    except ValueError:
        raise ValueError(f"Invalid hex color: {code!r}")

    if len(channels) == 3:
        channels.append(1.0)
    return tuple(channels)


def _parse_sequence(values: Sequence[Any]) -> Tuple[float, float, float, float]:
    if len(values) not in (3, 4):
        raise ValueError(f"Color needs 3 or 4 channels, got {len(values)}")

    # All-integer sequences are 0-255 channel values, anything else is 0-1 floats
    if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        if any(v < 0 or v > 255 for v in values):
            raise ValueError(f"Integer color channels must be in 0-255, got {list(values)}")
        channels = [v / 255.0 for v in values]
    else:
        channels = [float(v) for v in values]
        if any(c < 0.0 or c > 1.0 for c in channels):
            raise ValueError(f"Float color channels must be in 0-1, got {list(values)}")

    if len(channels) == 3:
        channels.append(1.0)
    return tuple(channels)


def parse_color(value: Any) -> Tuple[float, float, float, float]:
    """
    Parse a color into normalized RGBA floats.

    Accepts hex strings (``#rgb``, ``#rgba``, ``#rrggbb``, ``#rrggbbaa``),
    a few color names, comma-separated channel strings (``"255,0,255"``)
    and sequences of 0-255 integers or 0-1 floats.

    Args:
        value: Color to parse

    Returns:
        (r, g, b, a) tuple with channels in [0, 1]

    Raises:
        ValueError: If the value cannot be interpreted as a color
    """
    if isinstance(value, str):
        text = value.strip().lower()
        if text in NAMED_COLORS:
            return NAMED_COLORS[text]
        if "," in text:
            parts = [p.strip() for p in text.split(",")]
            try:
                numbers = [int(p) if p.lstrip("-").isdigit() else float(p) for p in parts]
            except ValueError:
                raise ValueError(f"Invalid color channels: {value!r}")
            return _parse_sequence(numbers)
        return _parse_hex(text)

    if isinstance(value, (list, tuple)):
        return _parse_sequence(value)

    raise ValueError(f"Unsupported color value: {value!r}")


def format_color(color: Sequence[float]) -> str:
    """Format normalized channels as a ``#rrggbb`` (or ``#rrggbbaa``) hex string."""
    channels = [int(round(min(max(c, 0.0), 1.0) * 255)) for c in color]
    if len(channels) == 4 and channels[3] == 255:
        channels = channels[:3]
    return "#" + "".join(f"{c:02x}" for c in channels)
