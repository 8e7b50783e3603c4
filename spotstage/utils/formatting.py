"""
Human-readable sizes and durations for listings and summaries.
"""

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(size: int) -> str:
    """Formats a byte count, e.g. '512 B' or '145.3 MB'."""
    if size < 1024:
        return f"{max(size, 0)} B"
    value = float(size)
    for unit in SIZE_UNITS[1:]:
        value /= 1024
        if value < 1024 or unit == SIZE_UNITS[-1]:
            return f"{value:.1f} {unit}"
    return f"{value:.1f} {SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """Formats elapsed seconds as e.g. '1h 2m 5s'; zero units are left out."""
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    parts = [
        f"{amount}{unit}" for amount, unit in ((hours, "h"), (minutes, "m")) if amount
    ]
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)
