"""
Crop dialog: pick a fixed-aspect region of an image and hand it to Pillow.
"""

import logging
import tkinter as tk
from typing import Callable, Optional, Tuple

import customtkinter as ctk
from PIL import ImageTk

from asclepius.core.editing import EditRequest, EditResult
from asclepius.core.image_handler import ImageHandler, fit_aspect_box

CANVAS_SIZE = 640
MIN_BOX_WIDTH = 32


class CropDialog:
    """Modal crop tool.

    Shows the source image with a movable, wheel-resizable box locked to the
    request's aspect ratio. Apply writes the crop to the request destination;
    Cancel or closing the window reports a cancelled edit.
    """

    def __init__(self, parent, request: EditRequest, image_handler: ImageHandler,
                 on_result: Callable[[EditResult], None]):
        self.parent = parent
        self.request = request
        self.image_handler = image_handler
        self.on_result = on_result
        self.logger = logging.getLogger(__name__)

        self._finished = False
        self._drag_origin: Optional[Tuple[int, int]] = None
        self._tk_image = None

        self.source = image_handler.load_image(request.source_uri)
        if self.source is None:
            self._finish(EditResult.failed(f"Unable to read image {request.source_uri}"))
            return

        self._create_dialog()

    def _create_dialog(self):
        self.dialog = ctk.CTkToplevel(self.parent)
        self.dialog.title("Edit Image")
        self.dialog.transient(self.parent)
        self.dialog.protocol("WM_DELETE_WINDOW", self._cancel)

        display = self.source.copy()
        display.thumbnail((CANVAS_SIZE, CANVAS_SIZE))
        self.scale = self.source.width / display.width
        self._tk_image = ImageTk.PhotoImage(display)

        self.canvas = tk.Canvas(self.dialog, width=display.width, height=display.height,
                                highlightthickness=0)
        self.canvas.grid(row=0, column=0, columnspan=2, padx=10, pady=10)
        self.canvas.create_image(0, 0, anchor="nw", image=self._tk_image)

        self.box = list(fit_aspect_box(display.width, display.height, self.request.aspect_ratio))
        self.rect = self.canvas.create_rectangle(*self.box, outline="yellow", width=2)

        self.canvas.bind("<ButtonPress-1>", self._on_press)
        self.canvas.bind("<B1-Motion>", self._on_drag)
        self.canvas.bind("<MouseWheel>", self._on_wheel)
        self.canvas.bind("<Button-4>", lambda e: self._resize(1.05))
        self.canvas.bind("<Button-5>", lambda e: self._resize(0.95))

        ctk.CTkButton(self.dialog, text="Cancel", command=self._cancel).grid(
            row=1, column=0, sticky="w", padx=10, pady=(0, 10))
        ctk.CTkButton(self.dialog, text="Apply", command=self._apply).grid(
            row=1, column=1, sticky="e", padx=10, pady=(0, 10))

        self.dialog.grab_set()

    def _on_press(self, event):
        self._drag_origin = (event.x, event.y)

    def _on_drag(self, event):
        if self._drag_origin is None:
            return
        dx = event.x - self._drag_origin[0]
        dy = event.y - self._drag_origin[1]
        self._drag_origin = (event.x, event.y)
        self._move(dx, dy)

    def _on_wheel(self, event):
        self._resize(1.05 if event.delta > 0 else 0.95)

    def _move(self, dx: int, dy: int):
        width = int(self.canvas.cget("width"))
        height = int(self.canvas.cget("height"))
        left, top, right, bottom = self.box
        dx = max(-left, min(dx, width - right))
        dy = max(-top, min(dy, height - bottom))
        self.box = [left + dx, top + dy, right + dx, bottom + dy]
        self.canvas.coords(self.rect, *self.box)

    def _resize(self, factor: float):
        width = int(self.canvas.cget("width"))
        height = int(self.canvas.cget("height"))
        ratio_w, ratio_h = self.request.aspect_ratio
        left, top, right, bottom = self.box

        new_w = (right - left) * factor
        max_w = min(width, height * ratio_w / ratio_h)
        new_w = max(MIN_BOX_WIDTH, min(new_w, max_w))
        new_h = new_w * ratio_h / ratio_w

        cx, cy = (left + right) / 2, (top + bottom) / 2
        left = min(max(0, cx - new_w / 2), width - new_w)
        top = min(max(0, cy - new_h / 2), height - new_h)
        self.box = [int(left), int(top), int(left + new_w), int(top + new_h)]
        self.canvas.coords(self.rect, *self.box)

    def _source_box(self) -> Tuple[int, int, int, int]:
        left, top, right, bottom = (round(v * self.scale) for v in self.box)
        return (max(0, left), max(0, top),
                min(self.source.width, right), min(self.source.height, bottom))

    def _apply(self):
        try:
            output = self.image_handler.crop_image(
                self.request.source_uri, self._source_box(), self.request.destination_uri)
            result = EditResult.success(output)
        except Exception as e:
            self.logger.error(f"Error cropping {self.request.source_uri}: {e}")
            result = EditResult.failed(str(e))
        self._close()
        self._finish(result)

    def _cancel(self):
        self._close()
        self._finish(EditResult.cancelled())

    def _close(self):
        self.dialog.grab_release()
        self.dialog.destroy()

    def _finish(self, result: EditResult):
        if self._finished:
            return
        self._finished = True
        self.on_result(result)
