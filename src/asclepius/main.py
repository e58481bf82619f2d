"""
Main application entry point for the Asclepius desktop app.
"""

import logging
import sys
from typing import Any, Dict, Optional

import customtkinter as ctk

from asclepius.core.dispatch import MainThreadDispatcher
from asclepius.core.image_handler import ImageHandler, SampleLibrary
from asclepius.core.settings import load_settings
from asclepius.ui.capture_screen import CaptureScreen


def setup_logging(config: Dict[str, Any]):
    """Setup logging configuration."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if config.get('log_file'):
        handlers.append(logging.FileHandler(config['log_file']))

    logging.basicConfig(
        level=getattr(logging, str(config.get('log_level', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


class AsclepiusApp:
    """Main application class."""

    def __init__(self, config_path: Optional[str] = None):
        self.config = load_settings(config_path)
        setup_logging(self.config)
        self.logger = logging.getLogger(__name__)

        self.dispatcher = MainThreadDispatcher()
        self.image_handler = ImageHandler(
            preview_size=self.config['preview_size'],
            cache_dir=self.config['cache_dir']
        )
        self.sample_library = SampleLibrary(self.config['samples_dir'], self.image_handler)

        self._setup_ui()

        self.logger.info("Application initialized successfully")

    def _setup_ui(self):
        """Initialize the user interface."""
        ctk.set_appearance_mode(self.config.get('ui_theme', 'dark'))
        ctk.set_default_color_theme("blue")
        self.root = ctk.CTk()
        self.root.title("Asclepius")
        self.root.geometry("560x680")
        self.root.minsize(420, 520)
        self.root.grid_columnconfigure(0, weight=1)
        self.root.grid_rowconfigure(0, weight=1)

        self.capture_screen = CaptureScreen(
            self.root,
            self.config,
            self.dispatcher,
            self.image_handler,
            self.sample_library,
            on_finish=self._on_closing,
        )
        self.capture_screen.grid(row=0, column=0, sticky="nsew")
        self.capture_screen.on_create()

        self._poll_ms = int(self.config.get('dispatch_poll_ms', 50))
        self.root.after(self._poll_ms, self._pump_dispatcher)

    def _pump_dispatcher(self):
        """Run callbacks posted by worker threads, then reschedule."""
        self.dispatcher.pump()
        self.root.after(self._poll_ms, self._pump_dispatcher)

    def _on_closing(self):
        """Handle application closing."""
        self.logger.info("Application closing...")
        self.root.quit()
        self.root.destroy()

    def run(self):
        """Start the application."""
        try:
            self.logger.info("Starting Asclepius")
            self.capture_screen.on_resume()
            self.root.mainloop()
        except Exception as e:
            self.logger.error(f"Fatal error in main loop: {e}")
            raise


def main():
    """Main entry point."""
    try:
        config_path = sys.argv[1] if len(sys.argv) > 1 else None
        app = AsclepiusApp(config_path)
        app.run()
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
    except Exception as e:
        print(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
