"""
Typed errors raised by editor operations.

Every error carries a short machine-readable ``code`` next to the human
message, plus the file (or key) it relates to when one is known.
"""

from __future__ import annotations

from typing import Any, Optional


class ImageEditorError(Exception):
    code = "image_editor_error"

    def __init__(self, message: str, data: Optional[Any] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.data = data
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        if self.data is None:
            return self.message
        return f"{self.message} ({self.data})"


class LoadError(ImageEditorError):
    code = "error_loading_image"


class ProbeError(ImageEditorError):
    code = "invalid_image"


class DimensionError(ImageEditorError):
    code = "error_getting_dimensions"


class KeyMappingError(ImageEditorError):
    code = "invalid_key"


class QualityError(ImageEditorError):
    code = "invalid_image_quality"


class RemoteExecutionError(ImageEditorError):
    code = "image_save_error"


class StreamDecodeError(ImageEditorError):
    code = "image_stream_error"
