from __future__ import annotations

import datetime as dt

import pytest

from git_doctor.periods import parse_period, slugify, window_period


def test_parse_period_year() -> None:
    p = parse_period("2025")
    assert p.label == "2025"
    assert p.start == dt.date(2025, 1, 1)
    assert p.end == dt.date(2026, 1, 1)


def test_parse_period_halves() -> None:
    p1 = parse_period("2025H1")
    p2 = parse_period("H22025")
    assert p1.end == dt.date(2025, 7, 1)
    assert p2.label == "2025H2"
    assert p2.start == dt.date(2025, 7, 1)


def test_parse_period_invalid() -> None:
    with pytest.raises(ValueError):
        parse_period("2025Q3")


def test_window_period_until_is_inclusive() -> None:
    p = window_period("2025-03-01", "2025-03-31")
    assert p.start == dt.date(2025, 3, 1)
    assert p.end == dt.date(2025, 4, 1)


def test_window_period_defaults_until_to_today() -> None:
    p = window_period("2025-01-01", today=dt.date(2025, 1, 10))
    assert p.end == dt.date(2025, 1, 11)


def test_window_period_rejects_reversed_range() -> None:
    with pytest.raises(ValueError):
        window_period("2025-02-01", "2025-01-01")


def test_slugify() -> None:
    assert slugify("my repo_2025-01-01") == "my-repo_2025-01-01"
    assert slugify("a/b\\c") == "a-b-c"
    assert slugify("") == "run"
