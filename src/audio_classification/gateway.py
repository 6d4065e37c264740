"""
Classification Gateway.

Takes the chronological pre-roll snapshot captured at the native rate and turns
it into a single YAMNet inference:
resample -> fixed-size window -> normalise to [-1, 1] -> infer -> top-K ranking.

An empty snapshot, an unavailable classifier or a failed inference all yield
`None`, which callers treat as "Unknown". Nothing here raises into the monitor.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from .model import ClassifierHandle, ClassifierLoaded
from .resampler import resample

logger = logging.getLogger(__name__)

# --- Constants ---
UNKNOWN_LABEL = "Unknown"
TOP_K = 3
INT16_FULL_SCALE = 32768.0
YAMNET_SAMPLE_RATE = 16000
YAMNET_INPUT_SAMPLES = 15600  # 0.975s @ 16kHz


@dataclass(frozen=True)
class ClassificationResult:
    label: str
    confidence: float
    top_results: tuple[tuple[str, float], ...] = field(default_factory=tuple)


def rank_scores(scores: np.ndarray, labels: list[str], k: int = TOP_K) -> tuple[tuple[str, float], ...]:
    """
    Picks the k highest scores, descending. Equal scores keep class-index order.

    :param scores: Per-class score vector.
    :param labels: Class vocabulary; indices past its end are labelled "Unknown".
    """
    scores = np.asarray(scores, dtype=np.float64).ravel()
    # Stable sort on negated scores keeps the lower index first on ties
    order = np.argsort(-scores, kind="stable")[:k]
    return tuple((labels[i] if i < len(labels) else UNKNOWN_LABEL, float(scores[i])) for i in order)


class ClassificationGateway:
    """
    Frames audio for the classifier and reduces its output to a ranked result.
    """

    def __init__(
        self,
        handle: ClassifierHandle,
        target_sample_rate: int = YAMNET_SAMPLE_RATE,
        model_input_size: int = YAMNET_INPUT_SAMPLES,
        window_anchor: str = "head",
        top_k: int = TOP_K,
    ):
        """
        :param handle: Result of load_classifier(), evaluated once at startup.
        :param target_sample_rate: Rate the model expects (Hz).
        :param model_input_size: Exact number of samples per inference window.
        :param window_anchor: "head" keeps the oldest audio when truncating, "tail" the newest.
        :param top_k: Number of ranked (label, score) pairs to keep.
        """
        if window_anchor not in ("head", "tail"):
            raise ValueError(f"window_anchor must be 'head' or 'tail', got {window_anchor!r}")

        self._handle = handle
        self._target_sr = target_sample_rate
        self._model_input_size = model_input_size
        self._window_anchor = window_anchor
        self._top_k = top_k

    @property
    def available(self) -> bool:
        return isinstance(self._handle, ClassifierLoaded)

    def build_window(self, samples: np.ndarray, sample_rate: int) -> np.ndarray:
        """
        Resamples and normalises int16 audio into a float32 window of exactly
        model_input_size samples (zero-padded or truncated).
        """
        resampled = resample(np.asarray(samples), sample_rate, self._target_sr)

        if len(resampled) > self._model_input_size:
            if self._window_anchor == "tail":
                resampled = resampled[-self._model_input_size :]
            else:
                resampled = resampled[: self._model_input_size]

        window = np.zeros(self._model_input_size, dtype=np.float32)
        window[: len(resampled)] = np.asarray(resampled, dtype=np.float32) / INT16_FULL_SCALE
        return window

    def classify(self, samples: np.ndarray, sample_rate: int) -> ClassificationResult | None:
        """
        :param samples: Chronological int16 snapshot at the native rate.
        :param sample_rate: Native capture rate (Hz).
        :return: Top label, its confidence and the ranked list, or None for "Unknown".
        """
        if not isinstance(self._handle, ClassifierLoaded):
            logger.debug("Classifier unavailable. Reporting 'Unknown'.")
            return None

        if samples is None or len(samples) == 0:
            logger.debug("Empty snapshot. Reporting 'Unknown'.")
            return None

        classifier = self._handle.classifier
        try:
            window = self.build_window(samples, sample_rate)
            scores = classifier.infer(window)
            ranked = rank_scores(scores, classifier.labels, self._top_k)
        except Exception as e:
            logger.error(f"❌ Classification failed: {e}")
            return None

        if not ranked:
            return None

        label, confidence = ranked[0]
        logger.info(
            f"👂 Heard: {label} ({confidence * 100:.1f}%) | "
            + ", ".join(f"{name}: {score * 100:.0f}%" for name, score in ranked)
        )
        return ClassificationResult(label=label, confidence=confidence, top_results=ranked)
