"""
On-device image classification using a pre-trained ONNX model.

``ImageClassifierHelper`` is the delegate the capture screen talks to: it runs
one inference off the UI thread and reports the outcome as a
``ClassificationEvent`` (Pending, Success or Failure) delivered to a
``ClassifierListener`` on the UI thread.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import onnxruntime as ort
from PIL import Image

from .dispatch import MainThreadDispatcher
from .image_handler import ImageHandler

INIT_ERROR_MESSAGE = "Image classifier failed to initialize. See error logs for details"
RESULT_THRESHOLD = 0.5


@dataclass(frozen=True)
class Category:
    """A single (label, score) prediction."""
    label: str
    score: float
    index: int = -1


@dataclass(frozen=True)
class Classifications:
    """Ranked categories produced by one output head of the model."""
    categories: List[Category] = field(default_factory=list)
    head_index: int = 0


@dataclass(frozen=True)
class Pending:
    image_path: str


@dataclass(frozen=True)
class Success:
    results: List[Classifications]
    inference_time_ms: float = 0.0


@dataclass(frozen=True)
class Failure:
    message: str


ClassificationEvent = Union[Pending, Success, Failure]


class ClassifierListener:
    """Receives the three phases of a classification request."""

    def on_pre_execute(self) -> None:
        pass

    def on_post_execute(self, results: Optional[List[Classifications]],
                        inference_time_ms: float) -> None:
        pass

    def on_error(self, error: str) -> None:
        pass


def deliver_event(event: ClassificationEvent, listener: ClassifierListener) -> None:
    """Route an event to the matching listener callback."""
    if isinstance(event, Pending):
        listener.on_pre_execute()
    elif isinstance(event, Success):
        listener.on_post_execute(event.results, event.inference_time_ms)
    elif isinstance(event, Failure):
        listener.on_error(event.message)
    else:
        raise TypeError(f"Unknown classification event: {event!r}")


def select_best_category(results: Optional[Sequence[Classifications]],
                         threshold: float = RESULT_THRESHOLD) -> Optional[Category]:
    """Return the first category of the first group scoring above ``threshold``.

    Order is the order the model returned; no re-sorting happens here. An
    empty result list or an empty first group yields ``None``.
    """
    if not results:
        return None
    for category in results[0].categories:
        if category.score > threshold:
            return category
    return None


def load_labels(labels_path: str) -> List[str]:
    """Read one label per line, skipping blanks."""
    with open(labels_path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip()]


def softmax(scores: np.ndarray) -> np.ndarray:
    shifted = np.exp(scores - np.max(scores))
    return shifted / shifted.sum()


class OnnxImageClassifier:
    """Thin wrapper around an ``onnxruntime.InferenceSession``."""

    def __init__(self, model_path: str, labels: Sequence[str], input_size: int = 224,
                 input_mean: float = 0.0, input_std: float = 1.0,
                 score_threshold: float = 0.1, max_results: int = 3,
                 apply_softmax: bool = False,
                 image_handler: Optional[ImageHandler] = None):
        self.model_path = model_path
        self.labels = list(labels)
        self.input_size = input_size
        self.input_mean = input_mean
        self.input_std = input_std
        self.score_threshold = score_threshold
        self.max_results = max_results
        # Set for models whose head emits raw logits.
        self.apply_softmax = apply_softmax
        self.image_handler = image_handler or ImageHandler()
        self.logger = logging.getLogger(__name__)

        self.session = ort.InferenceSession(model_path, providers=['CPUExecutionProvider'])
        model_input = self.session.get_inputs()[0]
        self.input_name = model_input.name
        shape = list(model_input.shape)
        # NCHW models put the channel axis second.
        self.channels_first = len(shape) == 4 and shape[1] == 3
        self.logger.info(f"Loaded model {model_path} (input {shape})")

    def preprocess(self, image: Image.Image) -> np.ndarray:
        """Resize, cast and normalise an image into a batch of one."""
        resized = image.convert('RGB').resize(
            (self.input_size, self.input_size), Image.Resampling.NEAREST)
        tensor = np.asarray(resized, dtype=np.float32)
        tensor = (tensor - self.input_mean) / self.input_std
        if self.channels_first:
            tensor = np.transpose(tensor, (2, 0, 1))
        return np.expand_dims(tensor, axis=0)

    def _label_for(self, index: int) -> str:
        if index < len(self.labels):
            return self.labels[index]
        return str(index)

    def postprocess(self, outputs: Sequence[np.ndarray]) -> List[Classifications]:
        """Turn raw output tensors into ranked, thresholded categories."""
        results = []
        for head_index, output in enumerate(outputs):
            scores = np.asarray(output, dtype=np.float32).reshape(-1)
            if self.apply_softmax:
                scores = softmax(scores)
            ranked = sorted(range(len(scores)), key=lambda i: float(scores[i]), reverse=True)
            categories = [
                Category(label=self._label_for(i), score=float(scores[i]), index=i)
                for i in ranked
                if float(scores[i]) >= self.score_threshold
            ][:self.max_results]
            results.append(Classifications(categories=categories, head_index=head_index))
        return results

    def classify(self, image_path: str) -> List[Classifications]:
        """Run the model on the image at ``image_path``."""
        image = self.image_handler.load_image(image_path)
        if image is None:
            raise ValueError(f"Unable to read image {image_path}")
        outputs = self.session.run(None, {self.input_name: self.preprocess(image)})
        return self.postprocess([output[0] for output in outputs])


def create_onnx_classifier(settings: Dict[str, Any]) -> OnnxImageClassifier:
    """Build the ONNX classifier described by the ``classifier`` settings block."""
    cfg = settings.get('classifier', {})
    labels_path = cfg.get('labels_path')
    labels = load_labels(labels_path) if labels_path and Path(labels_path).exists() else []
    return OnnxImageClassifier(
        model_path=cfg['model_path'],
        labels=labels,
        input_size=int(cfg.get('input_size', 224)),
        input_mean=float(cfg.get('input_mean', 0.0)),
        input_std=float(cfg.get('input_std', 1.0)),
        score_threshold=float(cfg.get('score_threshold', 0.1)),
        max_results=int(cfg.get('max_results', 3)),
        apply_softmax=bool(cfg.get('apply_softmax', False)),
    )


class ImageClassifierHelper:
    """Runs one classification at a time and reports it to a listener.

    Pending is delivered synchronously on the calling (UI) thread. The model
    call runs on a worker thread; Success or Failure is posted back through
    the dispatcher, so the listener only ever runs on the UI thread.
    """

    def __init__(self, settings: Dict[str, Any], listener: ClassifierListener,
                 dispatcher: MainThreadDispatcher,
                 classifier_factory: Optional[Callable[[Dict[str, Any]], Any]] = None):
        self.settings = settings
        self.listener = listener
        self.dispatcher = dispatcher
        self.classifier_factory = classifier_factory or create_onnx_classifier
        self.logger = logging.getLogger(__name__)

        self._classifier = None
        self._setup_lock = threading.Lock()

    def setup_image_classifier(self):
        """Create the underlying model once; raise RuntimeError on failure."""
        with self._setup_lock:
            if self._classifier is None:
                try:
                    self._classifier = self.classifier_factory(self.settings)
                except Exception as e:
                    self.logger.error(f"Error initializing image classifier: {e}")
                    raise RuntimeError(INIT_ERROR_MESSAGE) from e
            return self._classifier

    async def classify_async(self, image_path: str) -> Tuple[List[Classifications], float]:
        """Classify an image without blocking the running event loop."""
        classifier = await asyncio.to_thread(self.setup_image_classifier)
        start = time.perf_counter()
        results = await asyncio.to_thread(classifier.classify, image_path)
        inference_time_ms = (time.perf_counter() - start) * 1000
        self.logger.info(f"Classified {image_path} in {inference_time_ms:.0f} ms")
        return results, inference_time_ms

    def classify_static_image(self, image_path: str) -> Optional[threading.Thread]:
        """Start classifying ``image_path``; returns the worker thread."""
        if not image_path:
            self.logger.warning("classify_static_image called without an image")
            return None

        deliver_event(Pending(image_path), self.listener)

        worker = threading.Thread(
            target=self._classify_in_background,
            args=(image_path,),
            daemon=True,
        )
        worker.start()
        return worker

    def _classify_in_background(self, image_path: str):
        """Worker body: run the model and post the outcome to the UI thread."""
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            results, inference_time_ms = loop.run_until_complete(
                self.classify_async(image_path)
            )
            event: ClassificationEvent = Success(results, inference_time_ms)
        except Exception as e:
            self.logger.error(f"Classification error for {image_path}: {e}")
            event = Failure(str(e) or e.__class__.__name__)
        finally:
            loop.close()

        self.dispatcher.post(deliver_event, event, self.listener)
