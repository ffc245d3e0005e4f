from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from lambdaimage.api._invoker import FunctionInvoker
from lambdaimage.domain.types.request import InvocationResult
from lambdaimage.io.credentials import EditorConfig, LambdaClientConfig

logger = logging.getLogger(__name__)


class LambdaInvoker(FunctionInvoker):
    """
    Invokes the image function through the AWS Lambda API (aioboto3).

    The client is opened lazily on first use and shared by every in-flight
    invocation of this invoker.
    """

    _transport_errors = (BotoCoreError, ClientError, OSError, asyncio.TimeoutError, ValueError)

    def __init__(
        self,
        config: EditorConfig,
        client_config: Optional[LambdaClientConfig] = None,
        extra_config: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(config)
        self._raw_config = client_config or LambdaClientConfig()
        self._boto_config = self._raw_config.to_boto3_config(extra=extra_config)
        self._session = aioboto3.Session()
        self._client_cm = None
        self._client = None
        self._asyncio_lock: Optional[asyncio.Lock] = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def _get_lock(self) -> asyncio.Lock:
        if self._asyncio_lock is None:
            self._asyncio_lock = asyncio.Lock()
        return self._asyncio_lock

    async def _connect(self) -> "LambdaInvoker":
        lock = await self._get_lock()
        async with lock:
            if self.is_connected:
                return self
            self._config.validate_credentials()
            self._client_cm = self._session.client(
                service_name=self._raw_config.service_name,
                aws_access_key_id=self._config.get_key_id(),
                aws_secret_access_key=self._config.get_secret_key(),
                region_name=self._config.AWS_LAMBDA_IMAGE_REGION,
                config=self._boto_config,
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

    async def _send(self, payload: bytes) -> InvocationResult:
        await self._ensure_connected()
        resp = await self._client.invoke(
            FunctionName=self.function_name,
            InvocationType="RequestResponse",
            Payload=payload,
        )
        body = resp.get("Payload")
        data = b""
        if body is not None:
            try:
                data = await body.read()
            finally:
                body.close()
        return InvocationResult(
            status_code=resp["StatusCode"],
            function_error=resp.get("FunctionError"),
            payload=data,
        )
