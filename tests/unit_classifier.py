import sys
from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest
from PIL import Image


REPO_ROOT = Path(__file__).resolve().parent.parent
SRC_ROOT = REPO_ROOT / "src"
sys.path.insert(0, str(SRC_ROOT))

from asclepius.core import classifier as classifier_module  # noqa: E402
from asclepius.core.classifier import (  # noqa: E402
    INIT_ERROR_MESSAGE,
    Category,
    Classifications,
    ClassifierListener,
    Failure,
    ImageClassifierHelper,
    OnnxImageClassifier,
    Pending,
    Success,
    create_onnx_classifier,
    deliver_event,
    select_best_category,
)
from asclepius.core.dispatch import MainThreadDispatcher  # noqa: E402


def _create_test_image(path: Path, size=(120, 80), color=(20, 40, 60)) -> Path:
    image = Image.new("RGB", size, color)
    image.save(path, format="PNG")
    return path


class _FakeSession:
    """Stands in for onnxruntime.InferenceSession."""

    shape = [1, 224, 224, 3]
    outputs = [np.array([[0.1, 0.7, 0.2]], dtype=np.float32)]

    def __init__(self, model_path, providers=None):
        self.model_path = model_path
        self.feeds = []

    def get_inputs(self):
        return [SimpleNamespace(name="input_1", shape=list(self.shape))]

    def run(self, output_names, feeds):
        self.feeds.append(feeds)
        return self.outputs


@pytest.fixture
def fake_session(monkeypatch):
    monkeypatch.setattr(classifier_module.ort, "InferenceSession", _FakeSession)
    return _FakeSession


class _RecordingListener(ClassifierListener):
    def __init__(self):
        self.calls = []

    def on_pre_execute(self):
        self.calls.append(("pre",))

    def on_post_execute(self, results, inference_time_ms):
        self.calls.append(("post", results))

    def on_error(self, error):
        self.calls.append(("error", error))


class _FakeClassifier:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.paths = []

    def classify(self, image_path):
        self.paths.append(image_path)
        if self.error:
            raise self.error
        return self.results


def _group(*pairs):
    return Classifications([Category(label, score) for label, score in pairs])


def test_select_best_category_takes_first_above_threshold_in_order():
    results = [_group(("a", 0.3), ("b", 0.6), ("c", 0.9))]

    best = select_best_category(results)

    assert best.label == "b"


def test_select_best_category_threshold_is_strict():
    assert select_best_category([_group(("a", 0.5))]) is None
    assert select_best_category([_group(("a", 0.5001))]).label == "a"


def test_select_best_category_only_reads_first_group():
    results = [_group(("a", 0.2)), _group(("b", 0.99))]

    assert select_best_category(results) is None


def test_select_best_category_handles_empty_results():
    assert select_best_category(None) is None
    assert select_best_category([]) is None
    assert select_best_category([Classifications([])]) is None


def test_deliver_event_routes_to_listener():
    listener = _RecordingListener()
    results = [_group(("x", 0.9))]

    deliver_event(Pending("img.png"), listener)
    deliver_event(Success(results, 3.0), listener)
    deliver_event(Failure("boom"), listener)

    assert listener.calls == [("pre",), ("post", results), ("error", "boom")]


def test_onnx_classifier_ranks_and_thresholds(tmp_path, fake_session):
    image_path = _create_test_image(tmp_path / "cell.png")
    model = OnnxImageClassifier("model.onnx", ["Cancer", "Non Cancer", "Other"],
                                score_threshold=0.15, max_results=3)

    results = model.classify(str(image_path))

    assert len(results) == 1
    assert [c.label for c in results[0].categories] == ["Non Cancer", "Other"]
    assert results[0].categories[0].score == pytest.approx(0.7)
    assert results[0].categories[0].index == 1


def test_onnx_classifier_feeds_nhwc_batch(tmp_path, fake_session):
    image_path = _create_test_image(tmp_path / "cell.png", size=(300, 200))
    model = OnnxImageClassifier("model.onnx", ["a", "b", "c"], input_size=224)

    model.classify(str(image_path))

    tensor = model.session.feeds[0]["input_1"]
    assert tensor.shape == (1, 224, 224, 3)
    assert tensor.dtype == np.float32
    assert tensor[0, 0, 0].tolist() == [20.0, 40.0, 60.0]


def test_onnx_classifier_feeds_nchw_batch(monkeypatch):
    class _ChannelsFirst(_FakeSession):
        shape = [1, 3, 32, 32]

    monkeypatch.setattr(classifier_module.ort, "InferenceSession", _ChannelsFirst)
    model = OnnxImageClassifier("model.onnx", [], input_size=32, input_mean=127.5, input_std=127.5)

    tensor = model.preprocess(Image.new("RGB", (64, 64), (255, 0, 127)))

    assert tensor.shape == (1, 3, 32, 32)
    assert tensor[0, 0, 0, 0] == pytest.approx(1.0)
    assert tensor[0, 1, 0, 0] == pytest.approx(-1.0)


def test_postprocess_applies_softmax_to_logits_when_enabled(fake_session):
    model = OnnxImageClassifier("model.onnx", ["a", "b"], score_threshold=0.0, apply_softmax=True)

    results = model.postprocess([np.array([2.0, -1.0], dtype=np.float32)])

    scores = [c.score for c in results[0].categories]
    assert sum(scores) == pytest.approx(1.0)
    assert results[0].categories[0].label == "a"


def test_postprocess_keeps_single_sigmoid_score(fake_session):
    model = OnnxImageClassifier("model.onnx", ["Cancer"])

    low = model.postprocess([np.array([0.3], dtype=np.float32)])
    high = model.postprocess([np.array([0.7], dtype=np.float32)])

    assert low[0].categories[0].score == pytest.approx(0.3)
    assert select_best_category(low) is None
    best = select_best_category(high)
    assert best.label == "Cancer"
    assert best.score == pytest.approx(0.7)


def test_postprocess_keeps_multi_label_scores(fake_session):
    model = OnnxImageClassifier("model.onnx", ["a", "b"])

    results = model.postprocess([np.array([0.9, 0.8], dtype=np.float32)])

    assert [(c.label, round(c.score, 3)) for c in results[0].categories] == [("a", 0.9), ("b", 0.8)]


def test_equal_multi_label_scores_still_yield_candidate(fake_session):
    model = OnnxImageClassifier("model.onnx", ["a", "b"])

    best = select_best_category(model.postprocess([np.array([0.9, 0.9], dtype=np.float32)]))

    assert best is not None
    assert best.label == "a"
    assert best.score == pytest.approx(0.9)


def test_postprocess_caps_results_and_names_unknown_indexes(fake_session):
    model = OnnxImageClassifier("model.onnx", ["only"], score_threshold=0.0, max_results=2)

    results = model.postprocess([np.array([0.1, 0.5, 0.4], dtype=np.float32)])

    assert [c.label for c in results[0].categories] == ["1", "2"]


def test_onnx_classifier_rejects_unreadable_image(tmp_path, fake_session):
    bogus = tmp_path / "broken.png"
    bogus.write_bytes(b"not an image")
    model = OnnxImageClassifier("model.onnx", ["a"])

    with pytest.raises(ValueError):
        model.classify(str(bogus))


def test_create_onnx_classifier_reads_settings(tmp_path, fake_session):
    labels = tmp_path / "labels.txt"
    labels.write_text("Cancer\n\nNon Cancer\n", encoding="utf-8")
    settings = {
        "classifier": {
            "model_path": str(tmp_path / "model.onnx"),
            "labels_path": str(labels),
            "score_threshold": 0.2,
            "max_results": 1,
            "input_size": 128,
        }
    }

    model = create_onnx_classifier(settings)

    assert model.labels == ["Cancer", "Non Cancer"]
    assert model.input_size == 128
    assert model.max_results == 1
    assert model.score_threshold == pytest.approx(0.2)
    assert model.apply_softmax is False


def test_helper_reports_pending_synchronously_then_success():
    results = [_group(("benign", 0.92))]
    fake = _FakeClassifier(results=results)
    listener = _RecordingListener()
    dispatcher = MainThreadDispatcher()
    helper = ImageClassifierHelper({}, listener, dispatcher, classifier_factory=lambda _s: fake)

    worker = helper.classify_static_image("r7.png")

    assert listener.calls == [("pre",)]
    worker.join(timeout=5)
    assert listener.calls == [("pre",)]

    dispatcher.pump()

    assert listener.calls == [("pre",), ("post", results)]
    assert fake.paths == ["r7.png"]


def test_helper_converts_model_errors_to_failure():
    fake = _FakeClassifier(error=OSError("cannot read image"))
    listener = _RecordingListener()
    dispatcher = MainThreadDispatcher()
    helper = ImageClassifierHelper({}, listener, dispatcher, classifier_factory=lambda _s: fake)

    helper.classify_static_image("missing.png").join(timeout=5)
    dispatcher.pump()

    assert listener.calls == [("pre",), ("error", "cannot read image")]


def test_helper_reports_initialization_failure():
    def _broken_factory(_settings):
        raise FileNotFoundError("model.onnx")

    listener = _RecordingListener()
    dispatcher = MainThreadDispatcher()
    helper = ImageClassifierHelper({}, listener, dispatcher, classifier_factory=_broken_factory)

    helper.classify_static_image("img.png").join(timeout=5)
    dispatcher.pump()

    assert listener.calls == [("pre",), ("error", INIT_ERROR_MESSAGE)]


def test_helper_builds_model_once():
    created = []

    def _factory(settings):
        created.append(settings)
        return _FakeClassifier(results=[])

    dispatcher = MainThreadDispatcher()
    helper = ImageClassifierHelper({}, _RecordingListener(), dispatcher, classifier_factory=_factory)

    helper.classify_static_image("a.png").join(timeout=5)
    helper.classify_static_image("b.png").join(timeout=5)

    assert len(created) == 1


def test_helper_ignores_missing_image():
    listener = _RecordingListener()
    helper = ImageClassifierHelper({}, listener, MainThreadDispatcher(),
                                   classifier_factory=lambda _s: _FakeClassifier())

    assert helper.classify_static_image("") is None
    assert listener.calls == []


@pytest.mark.asyncio
async def test_classify_async_returns_results_and_timing():
    results = [_group(("malignant", 0.81))]
    helper = ImageClassifierHelper({}, _RecordingListener(), MainThreadDispatcher(),
                                   classifier_factory=lambda _s: _FakeClassifier(results=results))

    got, inference_time_ms = await helper.classify_async("img.png")

    assert got == results
    assert inference_time_ms >= 0
