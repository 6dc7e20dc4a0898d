"""
Tests for the draft autosave timer.
"""

import pytest

from screens.autosave import AutosaveDebouncer


@pytest.fixture
def debouncer(scheduler):
    return AutosaveDebouncer(scheduler, interval=30, enabled=True)


def make_save(saves):
    def save():
        saves.append(True)
        return "save-command"

    return save


@pytest.mark.parametrize(
    "is_dirty, saving, expect_save",
    [(True, False, True), (True, True, False), (False, False, False), (False, True, False)],
)
def test_tick(debouncer, is_dirty, saving, expect_save):
    """Should save only when dirty and idle, and always re-arm."""
    saves = []
    commands = debouncer.on_tick(is_dirty, saving, make_save(saves))

    assert bool(saves) == expect_save
    assert commands[-1].name == "autosave_tick"
    assert len(commands) == (2 if expect_save else 1)


def test_counts_ticks(debouncer):
    for _ in range(3):
        debouncer.on_tick(False, False, make_save([]))
    assert debouncer.ticks == 3


def test_disabled(scheduler):
    debouncer = AutosaveDebouncer(scheduler, enabled=False)
    assert debouncer.arm() == []
    assert debouncer.on_tick(True, False, make_save([])) == ["save-command"]
