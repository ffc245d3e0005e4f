import enum
from typing import List, Optional

from pydantic import Field

from lambdaimage.domain.types.base import BaseInfo
from lambdaimage.domain.types.operation import Operation


class ReturnMode(str, enum.Enum):
    STORAGE = "storage"
    STREAM = "stream"


class LambdaRequest(BaseInfo):
    """Batch sent to the remote function in one invocation."""

    bucket: str
    filename: str = Field(..., description="Storage key of the source image")
    new_filename: str = Field(default="", description="Storage key of the output image")
    quality: int
    operations: List[Operation] = Field(default_factory=list)
    return_mode: ReturnMode = Field(default=ReturnMode.STORAGE, alias="return")

    def to_payload(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")


class InvocationResult(BaseInfo):
    status_code: int
    function_error: Optional[str] = None
    payload: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300 and not self.function_error
