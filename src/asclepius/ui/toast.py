"""
Short auto-dismissing notices.
"""

import customtkinter as ctk


class Toast:
    """Undecorated window near the bottom of ``parent`` that closes itself."""

    def __init__(self, parent, message: str, duration_ms: int = 2000):
        self.window = ctk.CTkToplevel(parent)
        self.window.overrideredirect(True)
        self.window.attributes("-topmost", True)

        label = ctk.CTkLabel(self.window, text=message, corner_radius=8,
                             fg_color=("gray20", "gray80"),
                             text_color=("white", "black"))
        label.pack(padx=12, pady=8)

        self.window.update_idletasks()
        x = parent.winfo_rootx() + (parent.winfo_width() - self.window.winfo_width()) // 2
        y = parent.winfo_rooty() + parent.winfo_height() - self.window.winfo_height() - 48
        self.window.geometry(f"+{x}+{y}")

        self.window.after(duration_ms, self.dismiss)

    def dismiss(self):
        if self.window.winfo_exists():
            self.window.destroy()
