from __future__ import annotations

import pytest

from index_cleaner.sizes import format_size


def test_zero_and_small_values():
    assert format_size(0) == "0B"
    assert format_size(1) == "1B"
    assert format_size(1023) == "1023B"


def test_integer_truncation():
    assert format_size(1024) == "1KiB"
    assert format_size(1536) == "1KiB"
    assert format_size(1024 * 1024 - 1) == "1023KiB"
    assert format_size(5 * 1024**3 + 7) == "5GiB"


def test_largest_units():
    assert format_size(1024**7) == "1ZiB"
    assert format_size(1024**8) == "1YiB"
    assert format_size(3000 * 1024**8) == "3000YiB"


def test_unit_is_monotonic():
    units = ["B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB"]

    def rank(text: str) -> int:
        return units.index(text.lstrip("0123456789"))

    samples = [0, 1, 1000, 1024, 50_000, 1024**2, 10**9, 1024**4, 1024**6, 1024**8]
    ranks = [rank(format_size(b)) for b in samples]
    assert ranks == sorted(ranks)


def test_negative_rejected():
    with pytest.raises(ValueError):
        format_size(-1)
