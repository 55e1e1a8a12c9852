"""Human readable uptime strings."""

from __future__ import annotations

_UNITS = (
    ("day", ", "),
    ("hour", ", "),
    ("minute", ", "),
    ("second", ""),
)


def format_uptime(seconds: int) -> str:
    """Render a number of seconds as e.g. ``"2 days, 1 hour, 5 seconds"``.

    Zero-valued units are left out; an input of zero gives an empty string.
    """
    seconds = int(seconds)
    if seconds < 0:
        raise ValueError("seconds must not be negative")
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    days, hours = divmod(hours, 24)
    parts = []
    for value, (unit, separator) in zip((days, hours, minutes, secs), _UNITS):
        if value:
            suffix = "" if value == 1 else "s"
            parts.append(f"{value} {unit}{suffix}{separator}")
    return "".join(parts)