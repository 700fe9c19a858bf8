"""Byte and value conversions for OBD-II responses.

Adapters report data bytes as hex text; once split into a byte buffer the
first two entries are the response mode and the PID, so data helpers start
at offset 2 by default.
"""

from collections.abc import Sequence

from .constants import DATA_START


def bytes_to_int(buffer: Sequence[int], start: int = DATA_START, count: int = -1) -> int:
    """
    Fold a window of the buffer into an integer, big-endian.

    Missing bytes are not an error: a window running past the end of the
    buffer only accumulates the bytes that exist, and a window starting
    past the end yields 0.

    Args:
        buffer: Response bytes (0-255 each)
        start: Index of the first byte to use
        count: Number of bytes to use (-1 for everything from start)

    Returns:
        Accumulated value

    Example:
        >>> bytes_to_int([0x41, 0x0C, 0x1A, 0xF8])
        6904
        >>> bytes_to_int([0x41, 0x0D], count=1)
        0
    """
    window = buffer[start:] if count == -1 else buffer[start : start + count]
    result = 0
    for byte in window:
        result = result * 256 + byte
    return result


def percentage_of(buffer: Sequence[int], count: int = -1) -> float:
    """Scale the data bytes from 0-255 to 0-100."""
    return bytes_to_int(buffer, count=count) * 100 / 255


def bit_at(value: int, position: int, width: int = 8) -> int:
    """
    Extract a single bit.

    Args:
        value: Field holding the bit
        position: 1-based position counted from the most significant bit
        width: Width of the field in bits

    Returns:
        0 or 1
    """
    return (value >> (width - position)) & 1


def format_fixed(value: float, decimals: int) -> str:
    """
    Render a number with exactly ``decimals`` digits after the point.

    Example:
        >>> format_fixed(1.0, 2)
        '1.00'
        >>> format_fixed(12.6, 0)
        '13'
    """
    text = f"{float(value):.{decimals}f}"
    if text.startswith("-") and float(text) == 0:
        # -0.04 rounded to one place is still zero
        text = text[1:]
    return text


def hex_pairs_to_text(hex_text: str) -> str:
    """Decode consecutive hex pairs into characters, skipping unparsable pairs."""
    chars = []
    for i in range(0, len(hex_text), 2):
        try:
            chars.append(chr(int(hex_text[i : i + 2], 16)))
        except ValueError:
            continue
    return "".join(chars)


def format_hex(value: int) -> str:
    """Two-digit uppercase hex for a byte value."""
    return f"{value & 0xFF:02X}"
