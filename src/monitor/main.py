"""
Main Entry Point for the Edge Sound Sentinel.
Wires the audio source, classifier, capture storage and event sinks around the AlertEngine.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Suppress TensorFlow Logs
os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

from audio_classification.gateway import ClassificationGateway
from audio_classification.model import load_classifier

from .context import validate_threshold
from .engine import AlertEngine
from .errors import ConfigurationError, DeviceUnavailableError, InvalidThresholdError
from .events import EventBus
from .services.audio_sources import SoundDeviceSource, WavFileSource
from .services.capture_storage_service import CaptureStorageService
from .services.storage_providers import LocalStorageProvider, S3StorageProvider
from .settings import AppConfig, AppSettings, settings
from .sinks.log_sink import LoggingEventSink
from .sinks.metrics_sink import MetricsEventSink

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

# Suppress noisy HTTP libraries
for lib in ["httpx", "httpcore", "botocore", "boto3", "urllib3"]:
    logging.getLogger(lib).setLevel(logging.ERROR)

WAIT_POLL_SECONDS = 0.5


def parse_cli_args(argv=None):
    """Parses application arguments."""
    parser = argparse.ArgumentParser(description="Edge Sound Sentinel: loudness alerts with sound classification")
    parser.add_argument("-c", "--config", type=str, default="monitor_config.yaml", help="Path to config YAML")
    parser.add_argument("-t", "--threshold", type=str, default=None, help="Alert threshold in dB (1-130)")
    parser.add_argument("-i", "--input-file", type=str, default=None, help="Replay a WAV file instead of the microphone")
    parser.add_argument("--realtime", action="store_true", help="Pace WAV replay at real-time speed")
    parser.add_argument("-d", "--device", type=str, default=None, help="Input device index or name")
    parser.add_argument("--list-devices", action="store_true", help="List audio devices and exit")
    return parser.parse_args(argv)


def ensure_models_present(classifier_config):
    """Checks/Downloads AI models. A failed download only disables classification."""
    model_path = classifier_config.model_path_lite if classifier_config.use_tflite else classifier_config.model_path_full
    if Path(model_path).exists() and Path(classifier_config.class_map_path).exists():
        return

    logger.info("⬇️ First run detected. Downloading AI models...")
    from scripts import setup_yamnet

    try:
        setup_yamnet.ensure_assets(classifier_config)
    except setup_yamnet.AssetDownloadError as e:
        logger.error(f"❌ Model download failed, classification will be unavailable: {e}")


def build_storage(config: AppConfig, app_settings: AppSettings) -> CaptureStorageService:
    """Chooses the capture destination (local disk or S3) with optional local fallback."""
    storage_cfg = config.storage
    local = LocalStorageProvider(storage_cfg.output_path)

    if storage_cfg.provider == "s3":
        cloud = storage_cfg.cloud
        endpoint = cloud.s3_endpoint
        if cloud.provider == "magalu" and not endpoint:
            endpoint = "https://s3.magaluobjects.com"
        logger.info(f"☁️  Using S3 storage ({cloud.provider}) bucket '{cloud.bucket_name}'")
        primary = S3StorageProvider(
            access_key=app_settings.S3_ACCESS_KEY,
            secret_key=app_settings.S3_SECRET_KEY,
            bucket_name=cloud.bucket_name,
            region=cloud.aws_region,
            endpoint_url=endpoint,
        )
        fallback = local if storage_cfg.local_fallback else None
    else:
        primary, fallback = local, None

    return CaptureStorageService(primary, storage_cfg.folder_name, fallback=fallback, queue_size=storage_cfg.queue_size)


def parse_device(value: str | None) -> int | str | None:
    if value is None:
        return None
    return int(value) if value.isdigit() else value


def main(argv=None):
    args = parse_cli_args(argv)

    if args.list_devices:
        print(SoundDeviceSource.list_devices())
        return 0

    try:
        config = settings.load_config_file(args.config)
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return 2

    monitor_cfg = config.monitor
    try:
        if args.threshold is not None:
            monitor_cfg = monitor_cfg.model_copy(update={"default_threshold_db": validate_threshold(args.threshold)})
    except InvalidThresholdError as e:
        logger.error(f"❌ {e}")
        return 2

    # Audio Source
    try:
        if args.input_file:
            source = WavFileSource(args.input_file, monitor_cfg.block_size, realtime=args.realtime)
            monitor_cfg = monitor_cfg.model_copy(update={"sample_rate": int(source.sample_rate)})
        else:
            device = parse_device(args.device) if args.device is not None else monitor_cfg.device
            source = SoundDeviceSource(monitor_cfg.sample_rate, monitor_cfg.block_size, device=device)
    except DeviceUnavailableError as e:
        logger.error(f"❌ {e}")
        return 1

    # Classifier (loaded once)
    classifier_cfg = config.classifier
    if classifier_cfg.enabled and classifier_cfg.auto_download:
        ensure_models_present(classifier_cfg)

    gateway = ClassificationGateway(
        load_classifier(classifier_cfg),
        target_sample_rate=classifier_cfg.target_sample_rate,
        model_input_size=classifier_cfg.model_input_size,
        window_anchor=classifier_cfg.window_anchor,
        top_k=classifier_cfg.top_k,
    )

    # Sinks Layer
    events = EventBus()
    events.subscribe(LoggingEventSink())
    if config.metrics.enabled:
        metrics = MetricsEventSink()
        metrics.start(config.metrics.port)
        events.subscribe(metrics)

    engine = AlertEngine(
        config=monitor_cfg,
        source=source,
        gateway=gateway,
        storage=build_storage(config, settings),
        events=events,
    )

    # Application Run
    try:
        engine.start()
    except DeviceUnavailableError:
        return 1

    try:
        while not engine.wait(WAIT_POLL_SECONDS):
            pass
    except KeyboardInterrupt:
        logger.info("Stopping...")
    finally:
        engine.stop()

    if engine.source_error is not None:
        logger.error(f"❌ Monitoring ended by an audio input failure: {engine.source_error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
