"""
Tests for ModeRouter dispatch.
"""

from models.messages import KeyPressed, WindowResized
from screens.router import ModeRouter


def make_router():
    seen = []
    router = ModeRouter("view", name="test")
    router.on("view", KeyPressed, lambda m: seen.append(("view", m.key)))
    router.on("dialog", KeyPressed, lambda m: seen.append(("dialog", m.key)) or ["cmd"])
    router.on_any(KeyPressed, lambda m: seen.append(("shared", m.key)))
    router.on_any(WindowResized, lambda m: seen.append(("resize", m.width)))
    return router, seen


def test_mode_specific_handler_wins():
    router, seen = make_router()
    router.dispatch(KeyPressed("a"))
    router.transition("dialog")
    commands = router.dispatch(KeyPressed("b"))

    assert seen == [("view", "a"), ("dialog", "b")]
    assert commands == ["cmd"]


def test_shared_handler_used_in_any_mode():
    router, seen = make_router()
    router.transition("other")
    router.dispatch(KeyPressed("x"))
    router.dispatch(WindowResized(80, 24))

    assert seen == [("shared", "x"), ("resize", 80)]


def test_unrouted_message_is_ignored():
    router = ModeRouter("view")
    assert router.dispatch(object()) == []
    assert router.mode == "view"


def test_handler_returning_none_yields_no_commands():
    router, _ = make_router()
    assert router.dispatch(KeyPressed("a")) == []
