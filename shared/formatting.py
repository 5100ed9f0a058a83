"""Human-friendly rendering of sizes and durations for operator-facing text."""
from __future__ import annotations

_SI_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB")


def format_bytes(num: int) -> str:
    """Return ``num`` bytes in SI units, e.g. ``10 GB`` or ``1.5 MB``."""

    value = float(num)
    unit = _SI_UNITS[0]
    for unit in _SI_UNITS:
        if value < 1000.0 or unit == _SI_UNITS[-1]:
            break
        value /= 1000.0
    if unit == "B":
        return f"{num} B"
    # One decimal below 10 units, none above
    if value < 10:
        return f"{value:.1f} {unit}"
    return f"{value:.0f} {unit}"


def format_duration(seconds: int) -> str:
    """Return a compact duration such as ``30d``, ``1d12h`` or ``1h30m``.

    Zero components are dropped; anything under a second renders as ``0s``.
    """

    total = int(seconds)
    if total <= 0:
        return "0s"

    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)

    parts: list[str] = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return "".join(parts)


__all__ = ["format_bytes", "format_duration"]
