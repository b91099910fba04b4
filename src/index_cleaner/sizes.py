from __future__ import annotations

_UNITS = ["", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi"]


def format_size(num_bytes: int) -> str:
    """
    Render a byte count with binary prefixes, e.g. 1536 -> "1KiB".

    Each step is an integer division by 1024, so fractions are dropped.
    Anything past zebibytes is reported in "Yi" whatever its magnitude.
    """
    num = int(num_bytes)
    if num < 0:
        raise ValueError("size must be non-negative")
    for unit in _UNITS:
        if num < 1024:
            return f"{num}{unit}B"
        num //= 1024
    return f"{num}YiB"
