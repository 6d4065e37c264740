import numpy as np
import pytest

from audio_classification.gateway import ClassificationGateway, rank_scores
from audio_classification.model import ClassifierLoaded, ClassifierUnavailable, load_classifier
from monitor.settings import ClassifierConfig

from .conftest import ExplodingClassifier, FakeClassifier


def test_unavailable_classifier_yields_none(unavailable_gateway) -> None:
    assert not unavailable_gateway.available
    assert unavailable_gateway.classify(np.ones(16000, dtype=np.int16), 16000) is None


def test_empty_snapshot_yields_none(gateway, fake_classifier) -> None:
    assert gateway.classify(np.zeros(0, dtype=np.int16), 44100) is None
    assert fake_classifier.calls == 0


def test_top_three_in_descending_order(gateway) -> None:
    result = gateway.classify(np.ones(44100, dtype=np.int16), 44100)

    assert result.label == "Siren"
    assert result.confidence == pytest.approx(0.7)
    assert [label for label, _ in result.top_results] == ["Siren", "Dog", "Speech"]


def test_ties_keep_class_index_order() -> None:
    ranked = rank_scores(np.array([0.2, 0.5, 0.5, 0.1]), ["a", "b", "c", "d"])
    assert [label for label, _ in ranked] == ["b", "c", "a"]


def test_index_past_vocabulary_is_unknown() -> None:
    ranked = rank_scores(np.array([0.1, 0.2, 0.9]), ["a", "b"], k=1)
    assert ranked == (("Unknown", pytest.approx(0.9)),)


def test_short_snapshot_is_zero_padded(gateway) -> None:
    window = gateway.build_window(np.full(1000, 16384, dtype=np.int16), 16000)

    assert window.shape == (15600,)
    assert window.dtype == np.float32
    assert window[:1000] == pytest.approx(0.5)
    assert not window[1000:].any()


def test_long_snapshot_keeps_oldest_audio_by_default(gateway) -> None:
    samples = np.concatenate([np.full(15600, 1000, dtype=np.int16), np.full(5000, -1000, dtype=np.int16)])
    window = gateway.build_window(samples, 16000)
    assert (window > 0).all()


def test_tail_anchor_keeps_newest_audio(fake_classifier) -> None:
    gateway = ClassificationGateway(ClassifierLoaded(fake_classifier), window_anchor="tail")
    samples = np.concatenate([np.full(5000, 1000, dtype=np.int16), np.full(15600, -1000, dtype=np.int16)])
    assert (gateway.build_window(samples, 16000) < 0).all()


def test_native_rate_is_resampled_before_framing(gateway, fake_classifier) -> None:
    # 0.5s at 44.1kHz becomes 8000 samples at 16kHz
    window = gateway.build_window(np.full(22050, 3276, dtype=np.int16), 44100)
    assert np.count_nonzero(window) == 8000


def test_inference_failure_yields_none() -> None:
    gateway = ClassificationGateway(ClassifierLoaded(ExplodingClassifier()))
    assert gateway.classify(np.ones(16000, dtype=np.int16), 16000) is None


def test_invalid_anchor_is_rejected() -> None:
    with pytest.raises(ValueError):
        ClassificationGateway(ClassifierLoaded(FakeClassifier()), window_anchor="middle")


def test_load_classifier_disabled() -> None:
    handle = load_classifier(ClassifierConfig(enabled=False))
    assert isinstance(handle, ClassifierUnavailable)


def test_load_classifier_missing_assets_is_unavailable(tmp_path) -> None:
    handle = load_classifier(ClassifierConfig(class_map_path=str(tmp_path / "missing.csv")))
    assert isinstance(handle, ClassifierUnavailable)
    assert "missing.csv" in handle.reason


def test_fake_and_loaded_classifiers_satisfy_protocol(fake_classifier) -> None:
    from domain.interfaces import Classifier

    assert isinstance(fake_classifier, Classifier)
    assert isinstance(ClassifierLoaded(fake_classifier).classifier, Classifier)
