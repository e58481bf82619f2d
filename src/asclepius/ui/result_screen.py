"""
Result screen: shows the analysed image with its label and confidence.
"""

import logging
from typing import Callable, Optional

import customtkinter as ctk

from asclepius.core.image_handler import ImageHandler
from asclepius.core.navigation import ResultMessage, render_result_text


class ResultScreen:
    """Read-only window built from a single ``ResultMessage``."""

    def __init__(self, parent, message: ResultMessage, image_handler: ImageHandler,
                 on_closed: Optional[Callable[["ResultScreen"], None]] = None):
        self.parent = parent
        self.message = message
        self.image_handler = image_handler
        self.on_closed = on_closed
        self.logger = logging.getLogger(__name__)

        self.window = None
        self._preview = None

    def on_create(self):
        """Build the window and render the message."""
        self.window = ctk.CTkToplevel(self.parent)
        self.window.title("Result")
        self.window.geometry("560x640")
        self.window.transient(self.parent)
        self.window.protocol("WM_DELETE_WINDOW", self.on_destroy)
        self.window.bind("<Escape>", lambda _e: self.on_destroy())

        self.window.grid_columnconfigure(0, weight=1)
        self.window.grid_rowconfigure(0, weight=1)

        self.result_image = ctk.CTkLabel(self.window, text="")
        self.result_image.grid(row=0, column=0, sticky="nsew", padx=16, pady=16)

        self.result_text = ctk.CTkLabel(self.window, text="", font=("Arial", 22, "bold"))
        self.result_text.grid(row=1, column=0, sticky="ew", padx=16, pady=(0, 24))

        self._init_view()

    def _init_view(self):
        preview = self.image_handler.create_preview(self.message.image_uri)
        if preview is not None:
            self._preview = ctk.CTkImage(light_image=preview, dark_image=preview,
                                         size=preview.size)
            self.result_image.configure(image=self._preview)
        else:
            self.logger.warning(f"Could not render {self.message.image_uri}")
            self.result_image.configure(text=self.message.image_uri)

        self.result_text.configure(text=render_result_text(self.message))

    def on_resume(self):
        if self.window is not None:
            self.window.lift()
            self.window.focus_set()

    def on_destroy(self):
        if self.window is not None:
            self.window.destroy()
            self.window = None
        self._preview = None
        if self.on_closed:
            self.on_closed(self)
