import sys
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parent.parent
SRC_ROOT = REPO_ROOT / "src"
sys.path.insert(0, str(SRC_ROOT))

from asclepius.core.classifier import Category  # noqa: E402
from asclepius.core.exit_guard import BackPressGuard  # noqa: E402
from asclepius.core.navigation import ResultMessage, format_score, render_result_text  # noqa: E402


class _Clock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.mark.parametrize(
    "score, expected",
    [
        (0.873, "87"),
        (0.5049, "50"),
        (0.92, "92"),
        (0.125, "13"),
        (1.0, "100"),
        (0.0, "0"),
    ],
)
def test_format_score_rounds_half_up(score, expected):
    assert format_score(score) == expected


def test_format_score_missing_is_zero():
    assert format_score(None) == "0"


def test_render_result_text():
    message = ResultMessage("/tmp/r.png", "Cancer", 0.873)

    assert render_result_text(message) == "Cancer 87%"


def test_render_result_text_without_candidate():
    message = ResultMessage.from_category("/tmp/r.png", None)

    assert message.label is None
    assert message.score is None
    assert render_result_text(message) == "None 0%"


def test_result_message_keeps_reference_unchanged():
    reference = "/home/user/Pictures/scan (1).png"

    message = ResultMessage.from_category(reference, Category("Non Cancer", 0.77))

    assert message.image_uri == reference
    assert message.label == "Non Cancer"
    assert message.score == pytest.approx(0.77)


def test_result_message_is_immutable():
    message = ResultMessage("/tmp/r.png", "Cancer", 0.9)

    with pytest.raises(FrozenInstanceError):
        message.label = "Other"


def test_first_back_press_never_exits():
    guard = BackPressGuard(clock=_Clock(0.0))

    assert guard.press() is False
    assert guard.last_press_ms == 0.0


def test_second_back_press_inside_window_exits():
    clock = _Clock(0.0)
    guard = BackPressGuard(clock=clock)
    guard.press()

    clock.now = 1999
    assert guard.press() is True


def test_late_second_press_rearms_window():
    clock = _Clock(0.0)
    guard = BackPressGuard(clock=clock)
    guard.press()

    clock.now = 2000
    assert guard.press() is False
    assert guard.last_press_ms == 2000

    clock.now = 3500
    assert guard.press() is True
