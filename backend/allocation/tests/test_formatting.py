"""
Tests for credit display helpers.
"""

import pytest

from allocation.formatting import format_compact_tdh, format_votes, to_precision


@pytest.mark.parametrize("amount,expected", [
    (0, "0"),
    (float('nan'), "0"),
    (float('inf'), "0"),
    (5, "5"),
    (12.5, "12.5"),
    (100, "100"),
    (1_234, "1.23K"),
    (12_345, "12.3K"),
    (1_500_000, "1.50M"),
    (-2_500, "-2.50K"),
])
def test_format_compact_tdh(amount, expected):
    assert format_compact_tdh(amount) == expected


def test_to_precision_switches_to_exponent():
    assert to_precision(999.999) == "1.00e+3"
    assert to_precision(0.5) == "0.500"


@pytest.mark.parametrize("votes,expected", [
    (0, "0"),
    (999, "999"),
    (999.4, "999"),
    (999.7, "1.0K"),
    (float('nan'), "0"),
    (1_500, "1.5K"),
    (2_340_000, "2.3M"),
])
def test_format_votes(votes, expected):
    assert format_votes(votes) == expected
