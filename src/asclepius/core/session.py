"""
State and behaviour of the capture screen, independent of the widget toolkit.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .classifier import (ClassifierListener, Classifications, ImageClassifierHelper,
                         RESULT_THRESHOLD, select_best_category)
from .dispatch import MainThreadDispatcher
from .editing import EDIT_ASPECT_RATIO, EditRequest, EditResult, EditStatus
from .exit_guard import BACK_PRESS_WINDOW_MS, BackPressGuard
from .image_handler import ImageHandler, SampleLibrary
from .navigation import ResultMessage

MENU_SAMPLE = 1
MENU_EDIT = 2

EDIT_FAILED_NOTICE = "Failed edit image"
EDIT_SUCCESS_NOTICE = "Successfully edit image"
PRESS_BACK_AGAIN_NOTICE = "Press back again"


@dataclass(frozen=True)
class MenuItem:
    item_id: int
    title: str
    enabled: bool


class CaptureView:
    """What the capture session needs from its screen."""

    def show_image(self, image_uri: str) -> None:
        raise NotImplementedError

    def set_progress_visible(self, visible: bool) -> None:
        raise NotImplementedError

    def set_actions_enabled(self, gallery: bool, analyze: bool) -> None:
        raise NotImplementedError

    def invalidate_menu(self) -> None:
        raise NotImplementedError

    def show_notice(self, message: str) -> None:
        raise NotImplementedError

    def open_result(self, message: ResultMessage) -> None:
        raise NotImplementedError

    def finish(self) -> None:
        raise NotImplementedError


class CaptureSession(ClassifierListener):
    """Holds the current image and drives the capture screen.

    Every method here runs on the UI thread. Work that blocks (sample
    decoding, inference) runs on worker threads which only talk back through
    the dispatcher.
    """

    def __init__(self, view: CaptureView, settings: Dict[str, Any],
                 dispatcher: MainThreadDispatcher, image_handler: ImageHandler,
                 sample_library: SampleLibrary,
                 classifier_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.view = view
        self.settings = settings
        self.dispatcher = dispatcher
        self.image_handler = image_handler
        self.sample_library = sample_library
        self.logger = logging.getLogger(__name__)

        self.current_image_uri: Optional[str] = None
        # Set when the current image is a copy written by the app (sample or edit).
        self._owns_current_image = False
        self._pending_edit: Optional[EditRequest] = None
        self.is_busy = False
        self.result_threshold = float(settings.get('result_threshold', RESULT_THRESHOLD))
        self.aspect_ratio = tuple(settings.get('edit_aspect_ratio', EDIT_ASPECT_RATIO))

        window_ms = int(settings.get('back_press_window_ms', BACK_PRESS_WINDOW_MS))
        if clock is not None:
            self.back_guard = BackPressGuard(window_ms, clock=clock)
        else:
            self.back_guard = BackPressGuard(window_ms)

        self.classifier_helper = ImageClassifierHelper(
            settings, self, dispatcher, classifier_factory=classifier_factory)

    # -- lifecycle -------------------------------------------------------

    def on_create(self):
        self.enable_all_buttons()
        self.view.invalidate_menu()

    # -- action state ----------------------------------------------------

    @property
    def gallery_enabled(self) -> bool:
        return not self.is_busy

    @property
    def analyze_enabled(self) -> bool:
        return not self.is_busy and self.current_image_uri is not None

    def enable_all_buttons(self):
        self.view.set_actions_enabled(self.gallery_enabled, self.analyze_enabled)

    def disable_all_buttons(self):
        self.view.set_actions_enabled(False, False)

    def _set_busy(self, busy: bool):
        self.is_busy = busy
        self.view.set_progress_visible(busy)

    def menu_items(self) -> List[MenuItem]:
        """Options menu entries; Edit only exists once an image is held."""
        items = []
        if self.current_image_uri is not None:
            items.append(MenuItem(MENU_EDIT, "Edit Image", not self.is_busy))
        items.append(MenuItem(MENU_SAMPLE, "Sample", not self.is_busy))
        return items

    def _show_image(self):
        if self.current_image_uri:
            self.logger.debug(f"showImage: {self.current_image_uri}")
            self.view.show_image(self.current_image_uri)

    def _replace_current_image(self, image_uri: str, owned: bool):
        if self._owns_current_image and self.current_image_uri != image_uri:
            self.image_handler.discard_cached(self.current_image_uri)
        self.current_image_uri = image_uri
        self._owns_current_image = owned
        self._show_image()

    # -- gallery ---------------------------------------------------------

    def on_gallery_result(self, image_uri: Optional[str]):
        """Apply the file picker's answer; ``None`` means nothing was chosen."""
        if image_uri:
            self._replace_current_image(image_uri, owned=False)
        else:
            self.logger.info("No media selected")

        self.enable_all_buttons()
        self.view.invalidate_menu()

    # -- samples ---------------------------------------------------------

    def on_sample_chosen(self, sample_id: Optional[int]) -> Optional[threading.Thread]:
        """Load a bundled sample off the UI thread; ``None`` is a cancelled dialog."""
        if sample_id is None:
            self.logger.info("Sample selection cancelled")
            return None

        self._set_busy(True)
        self.disable_all_buttons()
        self.view.invalidate_menu()

        worker = threading.Thread(
            target=self._load_sample_in_background,
            args=(sample_id,),
            daemon=True,
        )
        worker.start()
        return worker

    def _load_sample_in_background(self, sample_id: int):
        try:
            image_uri = self.sample_library.load_sample(sample_id)
            self.dispatcher.post(self._on_sample_loaded, image_uri)
        except Exception as e:
            self.logger.error(f"Error loading sample {sample_id}: {e}")
            self.dispatcher.post(self._on_sample_failed, str(e))

    def _on_sample_loaded(self, image_uri: str):
        self._set_busy(False)
        self._replace_current_image(image_uri, owned=True)
        self.enable_all_buttons()
        self.view.invalidate_menu()

    def _on_sample_failed(self, error: str):
        self._set_busy(False)
        self.enable_all_buttons()
        self.view.invalidate_menu()
        self.view.show_notice(error)

    # -- editing ---------------------------------------------------------

    def create_edit_request(self) -> Optional[EditRequest]:
        """Build a crop request for the current image, or None without one."""
        if self.current_image_uri is None:
            return None
        destination = self.image_handler.create_edit_destination()
        self._pending_edit = EditRequest(self.current_image_uri, destination, self.aspect_ratio)
        return self._pending_edit

    def on_edit_result(self, result: EditResult):
        request, self._pending_edit = self._pending_edit, None
        succeeded = result.status is EditStatus.SUCCESS and bool(result.output_uri)

        if result.status is EditStatus.ERROR:
            self.logger.error(f"Edit failed: {result.error}")
            self.view.show_notice(EDIT_FAILED_NOTICE)
        elif succeeded:
            self.view.show_notice(EDIT_SUCCESS_NOTICE)
            self._replace_current_image(result.output_uri, owned=True)
        else:
            self.logger.info("Edit cancelled")

        # The reserved destination is unused unless it became the current image.
        if request is not None and not (succeeded and result.output_uri == request.destination_uri):
            self.image_handler.discard_cached(request.destination_uri)

        self.enable_all_buttons()
        self.view.invalidate_menu()

    # -- classification --------------------------------------------------

    def analyze(self) -> Optional[threading.Thread]:
        if self.current_image_uri is None:
            return None
        return self.classifier_helper.classify_static_image(self.current_image_uri)

    def on_pre_execute(self):
        self._set_busy(True)
        self.disable_all_buttons()
        self.view.invalidate_menu()

    def on_error(self, error: str):
        self._set_busy(False)
        self.enable_all_buttons()
        self.view.invalidate_menu()
        self.view.show_notice(error)

    def on_post_execute(self, results: Optional[List[Classifications]],
                        inference_time_ms: float):
        self.logger.info(f"Results ({inference_time_ms:.0f} ms): {results}")
        self._set_busy(False)
        self.enable_all_buttons()
        self.view.invalidate_menu()

        self.move_to_result(select_best_category(results, self.result_threshold))

    def move_to_result(self, category):
        message = ResultMessage.from_category(self.current_image_uri, category)
        self.view.open_result(message)

    # -- back ------------------------------------------------------------

    def on_back(self) -> bool:
        """Handle a back press; True when the screen was finished."""
        if self.back_guard.press():
            self.view.finish()
            return True
        self.view.show_notice(PRESS_BACK_AGAIN_NOTICE)
        return False
