"""
Public package interface for lambdaimage.

Image transforms are recorded locally and executed by a remote function in
one batch; see :class:`LambdaImageEditor`.
"""

from __future__ import annotations

from lambdaimage.api._invoker import FunctionInvoker
from lambdaimage.api.http_api import HttpInvoker
from lambdaimage.api.lambda_api import LambdaInvoker
from lambdaimage.domain.types import (
    CropOperation,
    FlipOperation,
    ImageInfo,
    ImageSize,
    InvocationResult,
    LambdaRequest,
    OutputDescriptor,
    PendingSave,
    ResizeOperation,
    ReturnMode,
    RotateOperation,
)
from lambdaimage.editor.base import ImageEditor
from lambdaimage.editor.lambda_editor import LambdaImageEditor
from lambdaimage.io.credentials import EditorConfig, LambdaClientConfig
from lambdaimage.io.exceptions import (
    DimensionError,
    ImageEditorError,
    KeyMappingError,
    LoadError,
    ProbeError,
    QualityError,
    RemoteExecutionError,
    StreamDecodeError,
)
from lambdaimage.io.url import KeyMapper, parse_s3_url
from lambdaimage.ops.multi_resize import MultiSizeOrchestrator, ResizeBatch, SizeSpec
from lambdaimage.ops.pipeline import OperationLog


def get_image_editor(file: str, config: EditorConfig, **kwargs) -> LambdaImageEditor:
    """Create and load a remote editor for ``file``."""
    editor = LambdaImageEditor(file, config, **kwargs)
    editor.load()
    return editor
