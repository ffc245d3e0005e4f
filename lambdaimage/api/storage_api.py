from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aioboto3
from botocore.config import Config

from lambdaimage.io.credentials import EditorConfig
from lambdaimage.io.decorators import run_sync

logger = logging.getLogger(__name__)


class StorageApi:
    """
    Read-only S3 client built on aioboto3, used to probe sources kept in the bucket.
    """

    def __init__(self, config: EditorConfig, extra_config: Optional[Dict[str, Any]] = None):
        self._editor_config = config
        self._config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            retries={"max_attempts": 5, "mode": "standard"},
            **(extra_config or {}),
        )
        self._session = aioboto3.Session()
        self._client_cm = None
        self._client = None
        self._asyncio_lock: Optional[asyncio.Lock] = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def _connect(self) -> "StorageApi":
        if self._asyncio_lock is None:
            self._asyncio_lock = asyncio.Lock()
        async with self._asyncio_lock:
            if self.is_connected:
                return self
            self._client_cm = self._session.client(
                service_name="s3",
                aws_access_key_id=self._editor_config.get_key_id(),
                aws_secret_access_key=self._editor_config.get_secret_key(),
                region_name=self._editor_config.AWS_LAMBDA_IMAGE_REGION,
                config=self._config,
            )
            self._client = await self._client_cm.__aenter__()
        return self

    async def _ensure_connected(self) -> None:
        if not self.is_connected:
            await self._connect()

    async def _close(self) -> None:
        if self._client_cm is not None:
            await self._client_cm.__aexit__(None, None, None)
        self._client = None
        self._client_cm = None

    def close(self) -> None:
        run_sync(self._close())

    async def _get_bytes(self, bucket: str, key: str) -> bytes:
        await self._ensure_connected()
        logger.info(f"GET s3://{bucket}/{key}")
        resp = await self._client.get_object(Bucket=bucket, Key=key)
        body = resp["Body"]
        try:
            return await body.read()
        finally:
            body.close()

    def get_bytes(self, bucket: str, key: str) -> bytes:
        """Download object as bytes."""
        return run_sync(self._get_bytes(bucket, key))
