"""
A module that loads the YAMNet audio classification model and its class map
from local files, once, at startup.

The result is a tagged variant: `ClassifierLoaded` wraps a ready classifier,
`ClassifierUnavailable` records why loading failed. Loading never raises, so
loudness monitoring keeps running with classification degraded to "Unknown".

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from domain.interfaces import Classifier

from .class_map import load_class_names

logger = logging.getLogger(__name__)

# Threads given to the TFLite interpreter
TFLITE_NUM_THREADS = 2


class TFLiteClassifier:
    """Runs the YAMNet TFLite model through the TFLite runtime interpreter."""

    def __init__(self, model_path: str | Path, labels: list[str], num_threads: int = TFLITE_NUM_THREADS):
        try:
            import tflite_runtime.interpreter as tflite
        except ImportError:
            try:
                import tensorflow.lite as tflite
            except ImportError:
                raise ImportError("TFLite runtime not found. Install 'tflite-runtime'.")

        if not Path(model_path).exists():
            raise FileNotFoundError(f"TFLite Model not found at {model_path}")

        logger.info(f"Loading TFLite model: {model_path}")
        self.labels = labels
        self._interpreter = tflite.Interpreter(model_path=str(model_path), num_threads=num_threads)
        self._interpreter.allocate_tensors()

        self._input_index = self._interpreter.get_input_details()[0]["index"]
        self._output_index = self._interpreter.get_output_details()[0]["index"]

    def infer(self, window: np.ndarray) -> np.ndarray:
        self._interpreter.set_tensor(self._input_index, window.astype(np.float32))
        self._interpreter.invoke()
        scores = np.asarray(self._interpreter.get_tensor(self._output_index))
        # YAMNet emits one score row per 0.48s frame
        return scores.mean(axis=0) if scores.ndim > 1 else scores


class TensorflowClassifier:
    """Runs the full YAMNet SavedModel through TensorFlow."""

    def __init__(self, model_path: str | Path, labels: list[str]):
        try:
            import tensorflow as tf
        except ImportError:
            raise ImportError("TensorFlow not found. Install 'tensorflow'.")

        if not Path(model_path).exists():
            raise FileNotFoundError(f"Full Model not found at {model_path}")

        logger.info(f"Loading Full TensorFlow model: {model_path}")
        self._tf = tf
        self.labels = labels
        self._model = tf.saved_model.load(str(model_path))

    def infer(self, window: np.ndarray) -> np.ndarray:
        input_tensor = self._tf.convert_to_tensor(window, dtype=self._tf.float32)
        scores, _, _ = self._model(input_tensor)
        return np.mean(scores.numpy(), axis=0)


@dataclass(frozen=True)
class ClassifierLoaded:
    classifier: Classifier


@dataclass(frozen=True)
class ClassifierUnavailable:
    reason: str


ClassifierHandle = ClassifierLoaded | ClassifierUnavailable


def load_classifier(config) -> ClassifierHandle:
    """
    Loads the class map and the configured model backend.

    :param config: ClassifierConfig section of the application settings.
    :return: ClassifierLoaded on success, ClassifierUnavailable otherwise.
    """
    if not config.enabled:
        logger.info("🔇 Classification disabled in configuration.")
        return ClassifierUnavailable("disabled in configuration")

    try:
        labels = load_class_names(config.class_map_path)
        if config.use_tflite:
            classifier = TFLiteClassifier(config.model_path_lite, labels, num_threads=config.num_threads)
        else:
            classifier = TensorflowClassifier(config.model_path_full, labels)
    except Exception as e:
        logger.error(f"❌ Classifier unavailable, alerts will be labelled 'Unknown': {e}")
        return ClassifierUnavailable(str(e))

    logger.info(f"✅ YAMNet classifier ready ({len(labels)} classes).")
    return ClassifierLoaded(classifier)
