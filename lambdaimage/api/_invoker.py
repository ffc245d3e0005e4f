# coding: utf-8
"""
Dispatch of operation batches to the remote image function.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import concurrent.futures
import json
import logging
from abc import ABC, abstractmethod
from typing import Tuple, Type

from lambdaimage.domain.types.request import InvocationResult, LambdaRequest
from lambdaimage.io.credentials import EditorConfig
from lambdaimage.io.decorators import run_sync, submit
from lambdaimage.io.exceptions import RemoteExecutionError, StreamDecodeError

logger = logging.getLogger(__name__)


def parse_error(result: InvocationResult) -> str:
    """
    Extracts the error text of a failed invocation.

    The remote function reports failures as ``{"errorMessage": ...}``; when the
    payload carries nothing readable the function error or status is used.
    """
    try:
        data = json.loads(result.payload.decode("utf-8"))
        if isinstance(data, dict):
            message = data.get("errorMessage") or data.get("message")
            if message:
                return str(message)
    except (UnicodeDecodeError, ValueError):
        pass
    if result.function_error:
        return result.function_error
    return f"Remote function returned status {result.status_code}"


def decode_stream_payload(payload: bytes) -> bytes:
    """
    Decodes the image bytes returned by a ``return: "stream"`` invocation.

    The function answers with base64 text, either bare or as a JSON string.
    """
    text = payload.strip()
    if text.startswith(b'"'):
        try:
            text = json.loads(text.decode("utf-8")).encode("ascii")
        except (UnicodeError, ValueError, AttributeError) as exc:
            raise StreamDecodeError("Malformed stream payload") from exc
    if not text:
        raise StreamDecodeError("Empty stream payload")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise StreamDecodeError("Malformed stream payload") from exc


class FunctionInvoker(ABC):
    """
    Sends a :class:`LambdaRequest` to the remote function.

    ``invoke`` blocks the caller, ``invoke_async`` returns a future right away.
    Either way a non-2xx status, a function error or a transport failure is
    reported as :class:`RemoteExecutionError`.
    """

    # exceptions of the underlying transport that mean "the call failed"
    _transport_errors: Tuple[Type[BaseException], ...] = (OSError, asyncio.TimeoutError)

    def __init__(self, config: EditorConfig):
        self._config = config

    @property
    def function_name(self) -> str:
        return self._config.AWS_LAMBDA_IMAGE_FUNCTION

    @abstractmethod
    async def _send(self, payload: bytes) -> InvocationResult:
        pass

    async def _close(self) -> None:
        pass

    async def _invoke(self, request: LambdaRequest) -> InvocationResult:
        try:
            payload = request.to_payload()
        except ValueError as exc:
            raise RemoteExecutionError(
                f"Could not serialize request: {exc}", data=request.new_filename
            ) from exc

        logger.info(f"INVOKE {self.function_name} {request.filename} -> {request.new_filename}")
        try:
            result = await self._send(payload)
        except self._transport_errors as exc:
            raise RemoteExecutionError(str(exc), data=request.new_filename) from exc

        if not result.ok:
            raise RemoteExecutionError(parse_error(result), data=request.new_filename)
        return result

    def invoke(self, request: LambdaRequest) -> InvocationResult:
        """Blocks until the remote call has finished, even inside a running loop."""
        return run_sync(self._invoke(request))

    def invoke_async(self, request: LambdaRequest) -> "concurrent.futures.Future[InvocationResult]":
        return submit(self._invoke(request))

    def close(self) -> None:
        run_sync(self._close())
