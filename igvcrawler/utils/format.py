# ============================================================================
# Utility Functions
# ============================================================================

from datetime import datetime
from typing import Optional


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable size."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.2f} PB"


def format_duration(total_seconds: float) -> str:
    """
    Format a duration as "1h 2m 3.4s", dropping leading zero units.

    Args:
        total_seconds: Duration in seconds

    Returns:
        Formatted duration, or an empty string for non-positive durations
    """
    if total_seconds <= 0:
        return ""
    hours = int(total_seconds // 3600)
    minutes = int((total_seconds % 3600) // 60)
    seconds = total_seconds % 60
    if hours > 0:
        return f"{hours}h {minutes}m {seconds:.1f}s"
    if minutes > 0:
        return f"{minutes}m {seconds:.1f}s"
    return f"{seconds:.1f}s"


def format_timestamp(epoch_seconds: Optional[float]) -> str:
    """Format a POSIX timestamp as local "YYYY-MM-DD HH:MM:SS", or "N/A" when unknown."""
    if epoch_seconds is None:
        return "N/A"
    return datetime.fromtimestamp(epoch_seconds).strftime("%Y-%m-%d %H:%M:%S")


def printable_text(text: str) -> str:
    """
    Make text with undecodable file name bytes safe to print or write as UTF-8.

    Python hands back non-UTF-8 bytes of file names as surrogate escapes
    (b"caf\\xe9" becomes "caf\\udce9"); these are shown as "\\xe9" instead.

    Args:
        text: Text that may contain surrogate-escaped bytes

    Returns:
        Text that encodes cleanly as UTF-8
    """
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")
