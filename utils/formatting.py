"""
Formatting utilities.
"""


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count in whole megabytes where possible.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string, e.g. "25MB" or "1.50MB".
    """
    megabytes = size_bytes / (1024 * 1024)
    if megabytes.is_integer():
        return f"{int(megabytes)}MB"
    return f"{megabytes:.2f}MB"


def mask_secret(value: str, visible: int = 4) -> str:
    """
    Mask a secret for display, keeping only the last few characters.

    Args:
        value: The secret value.
        visible: Number of trailing characters to keep.

    Returns:
        Masked string, or empty string if no value is set.
    """
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * 8 + value[-visible:]
