from __future__ import annotations

import pytest

from studycards.page_ranges import is_blank_selection, parse_page_selection


@pytest.mark.parametrize("selection", ["", "   ", "\t\n", None])
def test_blank_selection_means_every_page(selection: str | None) -> None:
    assert parse_page_selection(selection, 5) == [1, 2, 3, 4, 5]


def test_single_pages_are_sorted_and_deduplicated() -> None:
    assert parse_page_selection("3,1,2", 5) == [1, 2, 3]
    assert parse_page_selection("2, 2, 2", 5) == [2]


def test_ranges_are_inclusive() -> None:
    assert parse_page_selection("2-4", 5) == [2, 3, 4]


def test_reversed_range_is_dropped() -> None:
    assert parse_page_selection("4-2", 5) == []


def test_out_of_range_page_is_dropped() -> None:
    assert parse_page_selection("10", 5) == []


def test_whitespace_and_single_element_range() -> None:
    assert parse_page_selection(" 1 , 3-3 ", 3) == [1, 3]


def test_mixed_selection_keeps_only_valid_tokens() -> None:
    assert parse_page_selection("1, abc, 3-9, 0, 4-5, -2, 7", 6) == [1, 4, 5]


def test_overlapping_ranges_merge() -> None:
    assert parse_page_selection("1-3, 2-5, 5", 8) == [1, 2, 3, 4, 5]


@pytest.mark.parametrize("token", ["0", "-1", "1-", "-", "1-2-3", "a-b", "1.5", "0-2", "2-6"])
def test_malformed_or_out_of_bounds_tokens_are_dropped(token: str) -> None:
    assert parse_page_selection(token, 5) == []


def test_empty_tokens_between_commas_are_ignored() -> None:
    assert parse_page_selection("1,,2,", 3) == [1, 2]


def test_range_end_equal_to_page_count_is_kept() -> None:
    assert parse_page_selection("4-5", 5) == [4, 5]


def test_is_blank_selection() -> None:
    assert is_blank_selection(None)
    assert is_blank_selection("  ")
    assert not is_blank_selection(" 1 ")
