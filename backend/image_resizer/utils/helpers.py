"""
Helper Utilities
"""

import base64


def decode_base64_image(base64_string: str) -> bytes:
    """
    Decode a base64 encoded image string.

    A ``data:image/...;base64,`` prefix and embedded whitespace are accepted.
    Anything else outside the base64 alphabet is rejected.

    Args:
        base64_string: Base64 encoded image data

    Returns:
        Raw image bytes

    Raises:
        binascii.Error: If the string is not valid base64
    """
    # Remove data URL prefix if present
    if "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]

    base64_string = "".join(base64_string.split())
    return base64.b64decode(base64_string, validate=True)


def encode_bytes_to_base64(data: bytes) -> str:
    """
    Encode raw bytes to a base64 string.

    Args:
        data: Raw bytes (typically an encoded image)

    Returns:
        Base64 encoded string
    """
    return base64.b64encode(data).decode("ascii")


def format_bytes(size: int) -> str:
    """Render a byte count for log lines and error messages, e.g. '10.00 MB'."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            break
        value /= 1024
    else:
        unit = "TB"
    return f"{value:.2f} {unit}"
