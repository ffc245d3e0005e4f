from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, Mapping, Optional, Tuple

from lambdaimage.domain.types.image import ImageSize, OutputDescriptor
from lambdaimage.io import mime
from lambdaimage.io.credentials import DEFAULT_QUALITY
from lambdaimage.io.exceptions import QualityError
from lambdaimage.io.fs import generate_filename


class ImageEditor(ABC):
    """
    Contract shared by image editors: load a source, queue transforms, save.

    Subclasses decide where pixels are actually touched. Size, mime type,
    quality and output naming are tracked here.
    """

    def __init__(
        self,
        file: str,
        default_quality: int = DEFAULT_QUALITY,
        output_formats: Optional[Dict[str, str]] = None,
    ):
        self.file = file
        self.size: Optional[ImageSize] = None
        self.mime_type: Optional[str] = None
        self.default_quality = default_quality
        self.output_formats = dict(output_formats or {})
        self.quality: Optional[int] = None

    @staticmethod
    def supports_mime_type(mime_type: Optional[str]) -> bool:
        return mime.supports_mime_type(mime_type)

    @abstractmethod
    def load(self) -> None:
        pass

    @abstractmethod
    def save(self, filename: Optional[str] = None, mime_type: Optional[str] = None) -> OutputDescriptor:
        pass

    @abstractmethod
    def resize(self, max_w: Optional[int], max_h: Optional[int], crop: bool = False) -> None:
        pass

    @abstractmethod
    def multi_resize(self, sizes: Mapping[str, Any]) -> Dict[str, OutputDescriptor]:
        pass

    @abstractmethod
    def crop(
        self,
        src_x: int,
        src_y: int,
        src_w: int,
        src_h: int,
        dst_w: Optional[int] = None,
        dst_h: Optional[int] = None,
        src_abs: bool = False,
    ) -> None:
        pass

    @abstractmethod
    def rotate(self, angle: float) -> None:
        pass

    @abstractmethod
    def flip(self, horizontal: bool, vertical: bool) -> None:
        pass

    @abstractmethod
    def stream(self, mime_type: Optional[str] = None, output: Optional[BinaryIO] = None) -> bytes:
        pass

    def get_size(self) -> Optional[ImageSize]:
        return self.size

    def update_size(self, width: int, height: int) -> None:
        self.size = ImageSize(width=int(width), height=int(height))

    def get_quality(self) -> int:
        if self.quality is None:
            self.set_quality()
        return self.quality

    def set_quality(self, quality: Optional[int] = None) -> None:
        """
        Set compression quality, 1-100. ``None`` restores the default; 0 is
        treated as the lowest quality rather than an error.
        """
        if quality is None:
            quality = self.default_quality
        if quality == 0:
            quality = 1
        if not isinstance(quality, int) or not 1 <= quality <= 100:
            raise QualityError("Attempted to set image quality outside of the range [1,100].", data=quality)
        self.quality = quality

    def get_extension(self, mime_type: Optional[str] = None) -> Optional[str]:
        return mime.get_extension(mime_type)

    def get_output_format(
        self, filename: Optional[str] = None, mime_type: Optional[str] = None
    ) -> Tuple[Optional[str], Optional[str], str]:
        return mime.get_output_format(
            filename,
            mime_type,
            default_mime_type=self.mime_type,
            output_formats=self.output_formats,
        )

    def generate_filename(
        self,
        suffix: Optional[str] = None,
        dest_path: Optional[str] = None,
        extension: Optional[str] = None,
    ) -> str:
        """Name for a derived image, ``<name>-<w>x<h>.<ext>`` by default."""
        if not suffix:
            suffix = f"{self.size.width}x{self.size.height}"
        return generate_filename(self.file, suffix, dest_path=dest_path, extension=extension)
