"""
Asclepius: pick an image, classify it on-device, show the verdict.
"""

__version__ = "1.0.0"
