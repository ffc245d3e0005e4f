from lambdaimage.domain.types.image import ImageInfo, ImageSize, OutputDescriptor, PendingSave
from lambdaimage.domain.types.operation import (
    CropOperation,
    FlipOperation,
    Operation,
    ResizeOperation,
    RotateOperation,
)
from lambdaimage.domain.types.request import InvocationResult, LambdaRequest, ReturnMode

"""
Domain models (operations, invocation requests, image metadata).
"""
