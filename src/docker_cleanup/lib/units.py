"""
units.py
- Parses human-readable byte sizes ("1GB", "512MiB") and durations ("10s", "1m30s").
- Formats byte counts for log messages.
"""

import re

from docker_cleanup.core.errors import ConfigError

SI_SIZES = {suffix: 1000 ** exp for exp, suffix in enumerate("kmgtpe", 1)}
IEC_SIZES = {suffix: 1024 ** exp for exp, suffix in enumerate("kmgtpe", 1)}

DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*([a-z]*)\s*$")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_bytes(value):
    """
    Parse a byte-size string into a number of bytes.

    SI suffixes (kB, MB, GB, ...) are powers of 1000, IEC suffixes
    (KiB, MiB, GiB, ...) are powers of 1024. A bare number is bytes.

    Raises:
        ConfigError: if the value cannot be parsed.
    """
    if isinstance(value, int):
        return value

    match = _SIZE_RE.match(str(value).lower())
    if not match:
        raise ConfigError(f"invalid byte size: {value!r}")

    number, suffix = match.groups()
    if suffix.endswith("b"):
        suffix = suffix[:-1]

    if not suffix:
        multiplier = 1
    elif suffix.endswith("i") and len(suffix) == 2 and suffix[0] in IEC_SIZES:
        multiplier = IEC_SIZES[suffix[0]]
    elif len(suffix) == 1 and suffix in SI_SIZES:
        multiplier = SI_SIZES[suffix]
    else:
        raise ConfigError(f"unknown size suffix in {value!r}")

    return int(float(number) * multiplier)


def format_bytes(size):
    """Format a byte count with SI units, e.g. 1500000 -> '1.5 MB'."""
    sign = "-" if size < 0 else ""
    size = abs(size)
    if size < 10:
        return f"{sign}{size} B"

    value = float(size)
    for unit in ("B", "kB", "MB", "GB", "TB", "PB"):
        if value < 1000:
            break
        value /= 1000
    else:
        unit = "EB"

    if value < 10:
        return f"{sign}{value:.1f} {unit}"
    return f"{sign}{value:.0f} {unit}"


def parse_duration(value):
    """
    Parse a compound duration ("90s", "1m30s", "500ms") into seconds.

    A bare number is taken as seconds.
    """
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip().lower()
    if not text:
        raise ConfigError("empty duration")

    try:
        return float(text)
    except ValueError:
        pass

    total = 0.0
    position = 0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != position:
            break
        number, unit = match.groups()
        total += float(number) * DURATION_UNITS[unit]
        position = match.end()

    if position != len(text):
        raise ConfigError(f"invalid duration: {value!r}")
    return total
