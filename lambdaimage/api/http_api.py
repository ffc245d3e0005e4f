from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import httpx

from lambdaimage.api._invoker import FunctionInvoker
from lambdaimage.domain.types.request import InvocationResult
from lambdaimage.io.credentials import EditorConfig

logger = logging.getLogger(__name__)

FUNCTION_ERROR_HEADER = "X-Amz-Function-Error"


class HttpInvoker(FunctionInvoker):
    """
    Invokes the image function through its HTTP endpoint (function URL or gateway).

    Connection failures are retried with exponential backoff; an HTTP error
    status is returned as is and judged by the base class.
    """

    _transport_errors = (httpx.HTTPError, OSError, asyncio.TimeoutError)

    def __init__(
        self,
        config: EditorConfig,
        url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        retry_count: int = 3,
        retry_sleep_sec: float = 1,
        timeout: httpx._types.TimeoutTypes = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config)
        self._url = url or config.AWS_LAMBDA_IMAGE_FUNCTION_URL
        if not self._url:
            raise ValueError("AWS_LAMBDA_IMAGE_FUNCTION_URL must be set to use HttpInvoker.")
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._retry_count = max(1, retry_count)
        self._retry_sleep_sec = retry_sleep_sec
        self._timeout = timeout
        self._transport = transport
        self._httpx_client: Optional[httpx.AsyncClient] = None

    def _set_client(self) -> httpx.AsyncClient:
        if self._httpx_client is None:
            self._httpx_client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._httpx_client

    async def _close(self) -> None:
        if self._httpx_client is not None:
            await self._httpx_client.aclose()
        self._httpx_client = None

    async def _send(self, payload: bytes) -> InvocationResult:
        client = self._set_client()
        logger.info(f"POST {self._url}")

        for retry_idx in range(self._retry_count):
            try:
                response = await client.post(self._url, content=payload, headers=self._headers)
                break
            except httpx.TransportError as exc:
                if retry_idx + 1 >= self._retry_count:
                    raise
                sleep_sec = min(self._retry_sleep_sec * (2**retry_idx), 60)
                logger.warning(
                    f"POST {self._url} failed ({exc!r}), retry {retry_idx + 1}/{self._retry_count} in {sleep_sec}s"
                )
                await asyncio.sleep(sleep_sec)

        return InvocationResult(
            status_code=response.status_code,
            function_error=response.headers.get(FUNCTION_ERROR_HEADER),
            payload=response.content,
        )
