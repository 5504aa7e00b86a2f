"""Utility functions for Graph OAuth (graphoauth)."""

import os


def truncate_path(path, max_length=40):
    """Truncate a file path with ellipses if it's too long."""
    if len(path) <= max_length:
        return path

    # Keep the filename and as much of its parent as fits
    filename = os.path.basename(path)
    if len(filename) >= max_length - 3:
        return f"...{filename[-(max_length - 3):]}"

    remaining_space = max_length - len(filename) - 4  # "..." and "/"
    dir_part = os.path.dirname(path)[-remaining_space:] if remaining_space > 0 else ""
    return f"...{dir_part}/{filename}"


def redact(value, log_pii=False, keep=4):
    """Show only the first characters of a secret unless PII logging is on."""
    if value is None:
        return None
    if log_pii:
        return value
    if len(value) <= keep * 2:
        return "[REDACTED]"
    return f"{value[:keep]}...[REDACTED]"
