"""
Image handling utilities for loading, previewing, caching and cropping images.
"""

import logging
import tempfile
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageOps

SUPPORTED_FORMATS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.webp', '.gif'}

# File dialog filter shared by the picker.
IMAGE_FILE_TYPES = [
    ("Image files", "*.jpg *.jpeg *.png *.bmp *.tiff *.webp *.gif"),
]

MAX_CACHED_PREVIEWS = 16


class ImageHandler:
    """Handles image loading, preview creation and cache copies."""

    def __init__(self, preview_size: int = 480, cache_dir: Optional[str] = None,
                 max_cached_previews: int = MAX_CACHED_PREVIEWS):
        self.preview_size = preview_size
        self.cache_dir = Path(cache_dir) if cache_dir else Path(tempfile.gettempdir()) / 'asclepius'
        self.logger = logging.getLogger(__name__)
        self.supported_formats = set(SUPPORTED_FORMATS)

        # Previews in insertion order; the oldest is evicted first.
        self._preview_cache: Dict[Tuple[str, int], Image.Image] = {}
        self.max_cached_previews = max_cached_previews

    def is_supported_image(self, file_path: str) -> bool:
        """Check if the file is a supported image format."""
        return Path(file_path).suffix.lower() in self.supported_formats

    def load_image(self, file_path: str) -> Optional[Image.Image]:
        """Load an image from file path with EXIF orientation applied."""
        try:
            if not self.is_supported_image(file_path):
                return None

            with Image.open(file_path) as opened:
                image = ImageOps.exif_transpose(opened)
                image.load()

            # Convert to RGB if necessary
            if image.mode not in ('RGB', 'RGBA'):
                image = image.convert('RGB')

            return image
        except Exception as e:
            self.logger.error(f"Error loading image {file_path}: {e}")
            return None

    def create_preview(self, file_path: str, size: Optional[int] = None) -> Optional[Image.Image]:
        """Create a preview image that fits in a ``size`` square."""
        preview_size = size or self.preview_size
        key = (file_path, preview_size)
        if key in self._preview_cache:
            return self._preview_cache[key]

        image = self.load_image(file_path)
        if not image:
            return None

        try:
            image.thumbnail((preview_size, preview_size), Image.Resampling.LANCZOS)
            self._preview_cache[key] = image
            while len(self._preview_cache) > self.max_cached_previews:
                del self._preview_cache[next(iter(self._preview_cache))]
            return image
        except Exception as e:
            self.logger.error(f"Error creating preview for {file_path}: {e}")
            return None

    def save_to_cache(self, image: Image.Image, prefix: str = 'image') -> str:
        """Write ``image`` as a PNG in the cache directory and return its path."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        target = self.cache_dir / f"{prefix}_{uuid.uuid4().hex}.png"
        image.save(target, format='PNG')
        return str(target)

    def create_edit_destination(self) -> str:
        """Reserve an empty temp file for the crop tool to write into."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(prefix='temp_image_edit', suffix='.png',
                                         dir=self.cache_dir, delete=False) as tmp:
            return tmp.name

    def discard_cached(self, file_path: Optional[str]) -> bool:
        """Delete a file this handler wrote and drop its previews.

        Only files directly inside the cache directory are removed; anything
        else (a gallery pick, a bundled sample) is left untouched.
        """
        if not file_path:
            return False

        path = Path(file_path)
        for key in [k for k in self._preview_cache if k[0] == file_path]:
            del self._preview_cache[key]

        if path.parent.resolve() != self.cache_dir.resolve():
            return False

        try:
            if path.exists():
                path.unlink()
                self.logger.info(f"Deleted cached image: {path}")
                return True
        except OSError as e:
            self.logger.error(f"Error deleting cached image {path}: {e}")
        return False

    def crop_image(self, source_path: str, box: Tuple[int, int, int, int],
                   destination_path: str) -> str:
        """Crop ``source_path`` to ``box`` and save the result as a PNG.

        Raises on unreadable sources or boxes outside the image.
        """
        image = self.load_image(source_path)
        if image is None:
            raise ValueError(f"Unable to read image {source_path}")

        left, top, right, bottom = box
        if left < 0 or top < 0 or right > image.width or bottom > image.height \
                or right <= left or bottom <= top:
            raise ValueError(f"Crop box {box} outside image {image.size}")

        image.crop(box).save(destination_path, format='PNG')
        self.logger.info(f"Cropped {source_path} to {box} -> {destination_path}")
        return destination_path

    def clear_preview_cache(self):
        """Clear the preview cache to free memory."""
        self._preview_cache.clear()
        self.logger.info("Preview cache cleared")

    def scan_directory(self, directory: str) -> List[str]:
        """Scan directory for supported images."""
        image_files = []

        try:
            path = Path(directory)
            if not path.exists():
                return image_files

            for file_path in path.iterdir():
                if file_path.is_file() and self.is_supported_image(str(file_path)):
                    image_files.append(str(file_path.absolute()))

            self.logger.info(f"Found {len(image_files)} images in {directory}")

        except Exception as e:
            self.logger.error(f"Error scanning directory {directory}: {e}")

        return sorted(image_files)


def fit_aspect_box(width: int, height: int, aspect: Tuple[int, int]) -> Tuple[int, int, int, int]:
    """Largest centred box with the given aspect ratio inside a width x height image."""
    ratio_w, ratio_h = aspect
    box_w = width
    box_h = round(width * ratio_h / ratio_w)
    if box_h > height:
        box_h = height
        box_w = round(height * ratio_w / ratio_h)
    left = (width - box_w) // 2
    top = (height - box_h) // 2
    return left, top, left + box_w, top + box_h


class SampleLibrary:
    """Bundled sample images addressed by their position in the samples folder."""

    def __init__(self, samples_dir: str, image_handler: ImageHandler):
        self.samples_dir = samples_dir
        self.image_handler = image_handler
        self.logger = logging.getLogger(__name__)

    def list_samples(self) -> List[str]:
        return self.image_handler.scan_directory(self.samples_dir)

    def load_sample(self, sample_id: int) -> str:
        """Decode sample ``sample_id`` and return the path of a cached copy.

        Blocking; call it off the UI thread.
        """
        samples = self.list_samples()
        if sample_id < 0 or sample_id >= len(samples):
            raise KeyError(f"Unknown sample id {sample_id}")

        image = self.image_handler.load_image(samples[sample_id])
        if image is None:
            raise ValueError(f"Unable to decode sample {samples[sample_id]}")

        return self.image_handler.save_to_cache(image, prefix='sample')
