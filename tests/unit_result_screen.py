import sys
from pathlib import Path
from types import SimpleNamespace

import pytest


REPO_ROOT = Path(__file__).resolve().parent.parent
SRC_ROOT = REPO_ROOT / "src"
sys.path.insert(0, str(SRC_ROOT))

pytest.importorskip("customtkinter")

from asclepius.core.image_handler import ImageHandler  # noqa: E402
from asclepius.core.navigation import ResultMessage  # noqa: E402
from asclepius.ui.capture_screen import CaptureScreen  # noqa: E402
from asclepius.ui.result_screen import ResultScreen  # noqa: E402


def test_closed_result_screen_leaves_capture_screen_list():
    owner = SimpleNamespace(_result_screens=[])
    on_closed = lambda screen: CaptureScreen._on_result_closed(owner, screen)  # noqa: E731
    first = ResultScreen(None, ResultMessage("/tmp/a.png"), ImageHandler(), on_closed=on_closed)
    second = ResultScreen(None, ResultMessage("/tmp/b.png"), ImageHandler(), on_closed=on_closed)
    owner._result_screens.extend([first, second])

    first.on_destroy()

    assert owner._result_screens == [second]

    second.on_destroy()
    second.on_destroy()

    assert owner._result_screens == []
