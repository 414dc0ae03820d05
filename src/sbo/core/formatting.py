"""Formatting helpers for log lines and CLI output."""


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes.

    Returns:
        Formatted string (e.g., "4.2 GB", "128 MB", "1.5 KB").
    """
    if size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.1f} GB"
    elif size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.1f} MB"
    elif size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes} B"


def tail_lines(text: str, count: int = 50) -> str:
    """Return the last ``count`` non-empty-trailing lines of ``text``.

    Args:
        text: Multi-line command output.
        count: Maximum number of lines to keep.

    Returns:
        The trailing lines joined by newlines, or "" for empty input.
    """
    lines = text.rstrip().splitlines()
    return "\n".join(lines[-count:])
