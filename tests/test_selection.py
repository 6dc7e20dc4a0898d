"""
Tests for SelectionIndexer.
"""

import pytest

from screens.selection import SelectionIndexer


@pytest.mark.parametrize("count", [0, 1, 2, 5])
def test_index_stays_in_range(count):
    """Should keep the index in [0, count) (or 0 when empty) for any move sequence."""
    selection = SelectionIndexer()
    for step in [1, 1, -1, 1, 1, 1, -1, -1, -1, -1, 1]:
        if step > 0:
            selection.next(count)
        else:
            selection.previous(count)
        if count:
            assert 0 <= selection.index < count
        else:
            assert selection.index == 0


def test_wraps_both_ways():
    selection = SelectionIndexer()
    assert selection.previous(3) == 2
    assert selection.next(3) == 0
    assert selection.next(3) == 1


def test_reset():
    selection = SelectionIndexer()
    selection.next(4)
    selection.next(4)
    selection.reset()
    assert selection.index == 0


def test_selected_clamps_after_list_shrinks():
    selection = SelectionIndexer()
    selection.next(3)
    selection.next(3)
    assert selection.selected(["a", "b", "c"]) == "c"
    assert selection.selected(["a"]) == "a"
    assert selection.index == 0
    assert selection.selected([]) is None
