from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional

from pydantic import Field, SerializerFunctionWrapHandler, model_serializer

from lambdaimage.domain.types.base import BaseInfo
from lambdaimage.domain.types.request import InvocationResult


class ImageSize(BaseInfo):
    width: int
    height: int


class ImageInfo(BaseInfo):
    """Size and type of a source image, as read by the probe."""

    width: int
    height: int
    mime_type: str


class OutputDescriptor(BaseInfo):
    """Metadata describing a saved image."""

    path: Optional[str] = None
    file: str
    width: int
    height: int
    mime_type: str = Field(..., alias="mime-type")

    @model_serializer(mode="wrap")
    def _drop_missing_path(self, handler: SerializerFunctionWrapHandler):
        data = handler(self)
        if self.path is None:
            data.pop("path", None)
        return data

    def without_path(self) -> "OutputDescriptor":
        """Copy for multi-size results, which never expose the storage path."""
        return self.model_copy(update={"path": None})


@dataclass
class PendingSave:
    """
    A save whose remote invocation is still in flight.

    ``metadata`` already holds the final size; ``future`` resolves to the
    invocation result or raises ``RemoteExecutionError``.
    """

    future: "Future[InvocationResult]"
    metadata: OutputDescriptor

    def wait(self, timeout: Optional[float] = None) -> InvocationResult:
        return self.future.result(timeout=timeout)
