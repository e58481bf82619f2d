"""
Dialog listing the bundled sample images.
"""

from pathlib import Path
from typing import Callable, List, Optional

import customtkinter as ctk

from asclepius.core.image_handler import ImageHandler

THUMBNAIL_SIZE = 96


class SampleImagesDialog:
    """Grid of sample thumbnails; calls back with the chosen id or None."""

    def __init__(self, parent, samples: List[str], image_handler: ImageHandler,
                 on_choice: Callable[[Optional[int]], None]):
        self.parent = parent
        self.samples = samples
        self.image_handler = image_handler
        self.on_choice = on_choice
        self._images = []
        self._answered = False

        self._create_dialog()

    def _create_dialog(self):
        self.dialog = ctk.CTkToplevel(self.parent)
        self.dialog.title("Sample Images")
        self.dialog.transient(self.parent)
        self.dialog.protocol("WM_DELETE_WINDOW", lambda: self._answer(None))

        body = ctk.CTkScrollableFrame(self.dialog, width=4 * (THUMBNAIL_SIZE + 20), height=360)
        body.pack(fill="both", expand=True, padx=10, pady=10)

        if not self.samples:
            ctk.CTkLabel(body, text="No sample images available").grid(row=0, column=0, pady=20)

        for sample_id, path in enumerate(self.samples):
            thumb = self.image_handler.create_preview(path, THUMBNAIL_SIZE)
            image = None
            if thumb is not None:
                image = ctk.CTkImage(light_image=thumb, dark_image=thumb, size=thumb.size)
                self._images.append(image)
            button = ctk.CTkButton(body, text=Path(path).stem, image=image, compound="top",
                                   width=THUMBNAIL_SIZE + 8,
                                   command=lambda i=sample_id: self._answer(i))
            button.grid(row=sample_id // 4, column=sample_id % 4, padx=4, pady=4)

        ctk.CTkButton(self.dialog, text="Cancel", command=lambda: self._answer(None)).pack(pady=(0, 10))
        self.dialog.grab_set()

    def _answer(self, sample_id: Optional[int]):
        if self._answered:
            return
        self._answered = True
        self.dialog.grab_release()
        self.dialog.destroy()
        self.on_choice(sample_id)
