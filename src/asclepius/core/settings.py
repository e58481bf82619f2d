"""
Settings loading for the Asclepius desktop app.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

PACKAGE_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_SETTINGS_PATH = PACKAGE_ROOT / 'config' / 'settings.json'

DEFAULTS: Dict[str, Any] = {
    'classifier': {
        'model_path': 'models/cancer_classification.onnx',
        'labels_path': 'models/labels.txt',
        'score_threshold': 0.1,
        'max_results': 3,
        'input_size': 224,
        'input_mean': 0.0,
        'input_std': 1.0,
        'apply_softmax': False,
    },
    'result_threshold': 0.5,
    'back_press_window_ms': 2000,
    'edit_aspect_ratio': [16, 9],
    'samples_dir': 'assets/samples',
    'cache_dir': 'cache',
    'preview_size': 480,
    'toast_duration_ms': 2000,
    'dispatch_poll_ms': 50,
    'ui_theme': 'dark',
    'log_file': 'asclepius.log',
    'log_level': 'INFO',
}

# Settings whose values are paths resolved against the package directory.
_PATH_KEYS = ('samples_dir', 'cache_dir')
_CLASSIFIER_PATH_KEYS = ('model_path', 'labels_path')

logger = logging.getLogger(__name__)


def _resolve(value: str, base: Path) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return str(path)


def load_settings(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings.json and merge it over the defaults.

    A missing or unreadable file falls back to the defaults. Nested sections
    are merged key by key so a partial ``classifier`` block keeps the other
    classifier defaults.
    """
    merged = copy.deepcopy(DEFAULTS)
    path = Path(config_path) if config_path else DEFAULT_SETTINGS_PATH
    base = PACKAGE_ROOT

    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)

        merged.update({k: v for k, v in config.items() if k != 'classifier'})
        merged['classifier'] = {
            **DEFAULTS['classifier'], **config.get('classifier', {})}
    except FileNotFoundError:
        logger.warning(f"Settings file not found at {path}, using defaults")
    except Exception as e:
        logger.error(f"Error loading settings from {path}: {e}")
        merged = copy.deepcopy(DEFAULTS)

    for key in _PATH_KEYS:
        merged[key] = _resolve(merged[key], base)
    for key in _CLASSIFIER_PATH_KEYS:
        merged['classifier'][key] = _resolve(merged['classifier'][key], base)

    return merged
