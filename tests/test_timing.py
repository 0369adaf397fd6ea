"""Tests for blogforge.utils.timing."""

import pytest

from blogforge.utils.timing import format_elapsed

MS = 1_000_000


@pytest.mark.parametrize(
    "elapsed_ns, expected",
    [
        (0, "0 ms"),
        (999 * MS, "999 ms"),
        (1_500 * MS, "01.500s (1500 ms)"),
        (65_250 * MS, "01:05.250 (65250 ms)"),
        (3_723_004 * MS, "01:02:03.004 (3723004 ms)"),
    ],
)
def test_format_elapsed(elapsed_ns, expected):
    assert format_elapsed(elapsed_ns) == expected
