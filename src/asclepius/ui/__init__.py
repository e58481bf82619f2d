"""
UI package for the Asclepius desktop app.
"""

from .capture_screen import CaptureScreen
from .crop_dialog import CropDialog
from .result_screen import ResultScreen
from .sample_dialog import SampleImagesDialog
from .toast import Toast

__all__ = ['CaptureScreen', 'CropDialog', 'ResultScreen', 'SampleImagesDialog', 'Toast']
