"""Tests for LineRange overlap semantics."""

from wtt.core.git.abc import LineRange


def test_overlapping_ranges_touch() -> None:
    assert LineRange(1, 5).touches(LineRange(5, 8))


def test_adjacent_ranges_touch() -> None:
    assert LineRange(1, 5).touches(LineRange(6, 8))
    assert LineRange(6, 8).touches(LineRange(1, 5))


def test_separated_ranges_do_not_touch() -> None:
    assert not LineRange(1, 5).touches(LineRange(7, 9))
