"""
Utility to download the YAMNet models (TFLite and/or Full SavedModel) and the Class Map.
Sets up the asset directory used by the sound classifier.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging
import shutil
import sys
import tarfile
from pathlib import Path

import httpx

logger = logging.getLogger("setup_yamnet")

SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_SRC = SCRIPT_DIR.parent
BASE_DIR = PROJECT_SRC / "yamnet"

URLS = {
    "class_map": "https://raw.githubusercontent.com/tensorflow/models/master/research/audioset/yamnet/yamnet_class_map.csv",
    "full_model": "https://tfhub.dev/google/yamnet/1?tf-hub-format=compressed",
    "lite_model_archive": "https://www.kaggle.com/api/v1/models/google/yamnet/tfLite/classification-tflite/1/download",
}

DOWNLOAD_TIMEOUT_SECONDS = 60.0


class AssetDownloadError(RuntimeError):
    """Raised when a model asset cannot be downloaded or unpacked."""


def download_file(url: str, dest: Path):
    if dest.exists():
        logger.info(f"✅ {dest.name} already exists. Skipping.")
        return

    logger.info(f"⬇️ Downloading {dest.name}...")
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(dest.name + ".partial")
    try:
        with httpx.stream("GET", url, follow_redirects=True, timeout=DOWNLOAD_TIMEOUT_SECONDS) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
        partial.replace(dest)
        logger.info(f"✨ Saved to {dest}")
    except (httpx.HTTPError, OSError) as e:
        partial.unlink(missing_ok=True)
        raise AssetDownloadError(f"Failed to download {dest.name}: {e}") from e


def extract_tar(tar_path: Path, extract_to: Path):
    logger.info(f"📦 Extracting {tar_path.name} to {extract_to}...")
    try:
        # "r:*" allows tarfile to auto-detect compression (gz, bz2, etc.)
        with tarfile.open(tar_path, "r:*") as tar:
            tar.extractall(path=extract_to, filter="data")
        logger.info("✅ Extraction complete.")
    except (tarfile.TarError, OSError) as e:
        raise AssetDownloadError(f"Failed to extract archive: {e}") from e


def ensure_class_map(class_map_path: Path):
    download_file(URLS["class_map"], class_map_path)


def ensure_full_model(model_dir: Path):
    if (model_dir / "saved_model.pb").exists():
        logger.info("✅ Full Model already extracted.")
        return

    model_dir.mkdir(parents=True, exist_ok=True)
    tar_dest = model_dir.parent / "yamnet_full.tar.gz"
    download_file(URLS["full_model"], tar_dest)
    extract_tar(tar_dest, model_dir)
    tar_dest.unlink(missing_ok=True)


def ensure_lite_model(lite_path: Path):
    if lite_path.exists():
        logger.info("✅ TFLite Model already exists.")
        return

    lite_tar_dest = lite_path.parent / "yamnet_lite.tar.gz"
    lite_extract_dir = lite_path.parent / "temp_lite"

    download_file(URLS["lite_model_archive"], lite_tar_dest)
    extract_tar(lite_tar_dest, lite_extract_dir)
    found_tflite = list(lite_extract_dir.rglob("*.tflite"))

    try:
        if not found_tflite:
            raise AssetDownloadError("No .tflite file found in the downloaded archive!")
        shutil.move(str(found_tflite[0]), str(lite_path))
        logger.info(f"✨ Moved {found_tflite[0].name} to {lite_path}")
    finally:
        # Cleanup
        lite_tar_dest.unlink(missing_ok=True)
        shutil.rmtree(lite_extract_dir, ignore_errors=True)


def ensure_assets(config):
    """
    Downloads whatever the classifier configuration needs and is missing.

    :param config: ClassifierConfig section of the application settings.
    :raises AssetDownloadError: If any asset cannot be fetched.
    """
    ensure_class_map(Path(config.class_map_path))
    if config.use_tflite:
        ensure_lite_model(Path(config.model_path_lite))
    else:
        ensure_full_model(Path(config.model_path_full))


def main():
    # src/yamnet/
    # ├── class_map/
    # ├── model/       (Full SavedModel)
    # └── yamnet.tflite
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        ensure_class_map(BASE_DIR / "class_map" / "yamnet_class_map.csv")
        ensure_full_model(BASE_DIR / "model")
        ensure_lite_model(BASE_DIR / "yamnet.tflite")
    except AssetDownloadError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)

    logger.info("\n--- Setup Complete ---")
    logger.info(f"📂 Assets located in: {BASE_DIR.resolve()}")


if __name__ == "__main__":
    main()
