"""Sinks that persist scraped match records.

Each factory returns an ``async (data, file_name) -> None`` callable. Errors
are logged and re-raised so the caller can stop the current listing page.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional, Union

import aiofiles
import boto3

from ..domain.contracts import MatchRecord, Sink

logger = logging.getLogger(__name__)


def export_to_dir(directory: Union[str, Path]) -> Sink:
    """Write every record as ``directory/file_name``."""
    target = Path(directory)

    async def _sink(data: MatchRecord, file_name: str) -> None:
        output_path = target / file_name
        try:
            target.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(output_path, "w", encoding="utf-8") as f:
                await f.write(data.to_json())
        except OSError as exc:
            logger.error("Failed to write data to %s: %s", output_path, exc)
            raise
        logger.info("Data successfully exported to %s", output_path)

    return _sink


def export_to_s3(bucket: str, client: Optional[Any] = None) -> Sink:
    """Upload every record to ``s3://bucket/file_name``.

    boto3 is blocking, so ``put_object`` runs in a worker thread.
    """
    s3 = client or boto3.client("s3")

    async def _sink(data: MatchRecord, file_name: str) -> None:
        try:
            await asyncio.to_thread(
                s3.put_object,
                Bucket=bucket,
                Key=file_name,
                Body=data.to_json().encode("utf-8"),
                ContentType="application/json",
            )
        except Exception as exc:
            logger.error("Error uploading %s to S3 bucket %s: %s", file_name, bucket, exc)
            raise
        logger.info("Data successfully exported to S3 bucket: %s/%s", bucket, file_name)

    return _sink


__all__ = ["export_to_dir", "export_to_s3"]
