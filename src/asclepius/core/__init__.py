"""
Core package for the Asclepius desktop app.
"""

from .classifier import (Category, Classifications, ClassifierListener,
                         ImageClassifierHelper, OnnxImageClassifier, select_best_category)
from .dispatch import MainThreadDispatcher
from .editing import EditRequest, EditResult, EditStatus
from .exit_guard import BackPressGuard
from .image_handler import ImageHandler, SampleLibrary
from .navigation import ResultMessage, format_score, render_result_text
from .session import CaptureSession, CaptureView
from .settings import load_settings

__all__ = [
    'Category', 'Classifications', 'ClassifierListener', 'ImageClassifierHelper',
    'OnnxImageClassifier', 'select_best_category', 'MainThreadDispatcher',
    'EditRequest', 'EditResult', 'EditStatus', 'BackPressGuard', 'ImageHandler',
    'SampleLibrary', 'ResultMessage', 'format_score', 'render_result_text',
    'CaptureSession', 'CaptureView', 'load_settings',
]
