"""
Transform descriptors recorded by the editor and replayed by the remote processor.

Each descriptor serializes to ``{"action": <name>, ...fields}``, the shape the
remote function expects inside the ``operations`` array.
"""

from typing import Literal, Optional, Union

from pydantic import Field
from typing_extensions import Annotated

from lambdaimage.domain.types.base import BaseInfo


class ResizeOperation(BaseInfo):
    action: Literal["resize"] = "resize"
    width: int
    height: int


class CropOperation(BaseInfo):
    action: Literal["crop"] = "crop"
    src_x: int
    src_y: int
    src_width: int
    src_height: int
    destination_width: Optional[int] = None
    destination_height: Optional[int] = None


class RotateOperation(BaseInfo):
    action: Literal["rotate"] = "rotate"
    angle: float


class FlipOperation(BaseInfo):
    action: Literal["flip"] = "flip"
    horizontal: bool
    vertical: bool


Operation = Annotated[
    Union[ResizeOperation, CropOperation, RotateOperation, FlipOperation],
    Field(discriminator="action"),
]
