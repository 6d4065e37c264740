"""
Storage Providers.
Persist encoded captures either on local disk or in S3-compatible object storage.

Both follow finalize-then-publish: a capture is either fully visible under its
final name or not visible at all.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import contextlib
import logging
import os
from pathlib import Path

from ..errors import StorageWriteError

logger = logging.getLogger(__name__)

STAGING_SUFFIX = ".partial"


class LocalStorageProvider:
    """Writes captures under <root>/<folder>/ via a hidden staging file."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def store(self, folder: str, name: str, payload: bytes) -> Path:
        """
        :raises StorageWriteError: If the file could not be written and published.
        """
        target_dir = self.root / folder
        final_path = target_dir / name
        staging_path = target_dir / f".{name}{STAGING_SUFFIX}"

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(staging_path, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(staging_path, final_path)
        except OSError as e:
            with contextlib.suppress(OSError):
                staging_path.unlink(missing_ok=True)
            raise StorageWriteError(f"Local write failed for {final_path}: {e}") from e

        return final_path


class S3StorageProvider:
    """Handles AWS S3, Magalu Cloud, MinIO, etc. A put_object is atomic on the server side."""

    def __init__(self, access_key, secret_key, bucket_name, region=None, endpoint_url=None):
        import boto3

        self.bucket = bucket_name
        self.client = boto3.client(
            "s3",
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            endpoint_url=endpoint_url,
        )

    def store(self, folder: str, name: str, payload: bytes) -> str:
        key = f"{folder}/{name}"
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=payload, ContentType="audio/wav")
        except Exception as e:
            raise StorageWriteError(f"S3 upload failed for {key}: {e}") from e
        return f"s3://{self.bucket}/{key}"
