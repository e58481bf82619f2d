"""
Capture screen: choose an image, optionally crop it, and send it for analysis.
"""

import logging
import tkinter as tk
from tkinter import filedialog
from typing import Any, Callable, Dict, Optional

import customtkinter as ctk

from asclepius.core.dispatch import MainThreadDispatcher
from asclepius.core.image_handler import IMAGE_FILE_TYPES, ImageHandler, SampleLibrary
from asclepius.core.navigation import ResultMessage
from asclepius.core.session import MENU_EDIT, MENU_SAMPLE, CaptureSession, CaptureView

from .crop_dialog import CropDialog
from .result_screen import ResultScreen
from .sample_dialog import SampleImagesDialog
from .toast import Toast


class CaptureScreen(ctk.CTkFrame, CaptureView):
    """Main window content. Widget side of ``CaptureSession``."""

    def __init__(self, root, settings: Dict[str, Any], dispatcher: MainThreadDispatcher,
                 image_handler: ImageHandler, sample_library: SampleLibrary,
                 classifier_factory: Optional[Callable] = None,
                 on_finish: Optional[Callable[[], None]] = None):
        super().__init__(root)

        self.root = root
        self.settings = settings
        self.image_handler = image_handler
        self.sample_library = sample_library
        self.on_finish = on_finish
        self.logger = logging.getLogger(__name__)

        self.toast_duration_ms = int(settings.get('toast_duration_ms', 2000))
        self._preview = None
        self._result_screens = []

        self.session = CaptureSession(
            self, settings, dispatcher, image_handler, sample_library,
            classifier_factory=classifier_factory,
        )

    # -- lifecycle -------------------------------------------------------

    def on_create(self):
        """Build widgets and bind actions."""
        self._setup_ui()
        self._action_listeners()
        self.session.on_create()

    def on_resume(self):
        self.root.focus_set()

    def on_destroy(self):
        for screen in list(self._result_screens):
            screen.on_destroy()
        self.image_handler.clear_preview_cache()
        self.destroy()

    # -- layout ----------------------------------------------------------

    def _setup_ui(self):
        """Setup the user interface."""
        self.grid_columnconfigure((0, 1), weight=1)
        self.grid_rowconfigure(0, weight=1)

        preview_size = int(self.settings.get('preview_size', 480))
        self.preview_image_view = ctk.CTkLabel(
            self, text="No image selected", width=preview_size, height=preview_size,
            fg_color=("gray85", "gray17"), corner_radius=8)
        self.preview_image_view.grid(row=0, column=0, columnspan=2, sticky="nsew",
                                     padx=16, pady=16)

        self.progress_indicator = ctk.CTkProgressBar(self, mode="indeterminate")
        self.progress_indicator.grid(row=1, column=0, columnspan=2, sticky="ew", padx=16)
        self.progress_indicator.grid_remove()

        self.gallery_button = ctk.CTkButton(self, text="Gallery")
        self.gallery_button.grid(row=2, column=0, sticky="ew", padx=(16, 8), pady=16)

        self.analyze_button = ctk.CTkButton(self, text="Analyze")
        self.analyze_button.grid(row=2, column=1, sticky="ew", padx=(8, 16), pady=16)

        self.menubar = tk.Menu(self.root)
        self.options_menu = tk.Menu(self.menubar, tearoff=0)
        self.menubar.add_cascade(label="Options", menu=self.options_menu)
        self.root.config(menu=self.menubar)

    def _action_listeners(self):
        self.analyze_button.configure(command=self.session.analyze)
        self.gallery_button.configure(command=self._start_gallery)
        self.root.bind("<Escape>", lambda _e: self.session.on_back())
        self.root.protocol("WM_DELETE_WINDOW", self.session.on_back)

    # -- actions ---------------------------------------------------------

    def _start_gallery(self):
        path = filedialog.askopenfilename(
            parent=self.root, title="Select Image", filetypes=IMAGE_FILE_TYPES)
        self.session.on_gallery_result(path or None)

    def _on_menu_item(self, item_id: int):
        if item_id == MENU_SAMPLE:
            self._show_sample_dialog()
        elif item_id == MENU_EDIT:
            self._run_edit_image()

    def _show_sample_dialog(self):
        SampleImagesDialog(self.root, self.sample_library.list_samples(),
                           self.image_handler, self.session.on_sample_chosen)

    def _run_edit_image(self):
        request = self.session.create_edit_request()
        if request is not None:
            CropDialog(self.root, request, self.image_handler, self.session.on_edit_result)

    # -- CaptureView -----------------------------------------------------

    def show_image(self, image_uri: str):
        preview = self.image_handler.create_preview(image_uri)
        if preview is None:
            self.preview_image_view.configure(image=None, text="Unable to display image")
            return
        self._preview = ctk.CTkImage(light_image=preview, dark_image=preview, size=preview.size)
        self.preview_image_view.configure(image=self._preview, text="")

    def set_progress_visible(self, visible: bool):
        if visible:
            self.progress_indicator.grid()
            self.progress_indicator.start()
        else:
            self.progress_indicator.stop()
            self.progress_indicator.grid_remove()

    def set_actions_enabled(self, gallery: bool, analyze: bool):
        self.gallery_button.configure(state="normal" if gallery else "disabled")
        self.analyze_button.configure(state="normal" if analyze else "disabled")

    def invalidate_menu(self):
        self.options_menu.delete(0, tk.END)
        for item in self.session.menu_items():
            self.options_menu.add_command(
                label=item.title,
                state=tk.NORMAL if item.enabled else tk.DISABLED,
                command=lambda i=item.item_id: self._on_menu_item(i),
            )

    def show_notice(self, message: str):
        Toast(self.root, message, self.toast_duration_ms)

    def open_result(self, message: ResultMessage):
        screen = ResultScreen(self.root, message, self.image_handler,
                              on_closed=self._on_result_closed)
        screen.on_create()
        screen.on_resume()
        self._result_screens.append(screen)

    def _on_result_closed(self, screen: ResultScreen):
        if screen in self._result_screens:
            self._result_screens.remove(screen)

    def finish(self):
        self.on_destroy()
        if self.on_finish:
            self.on_finish()
