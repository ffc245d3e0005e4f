"""
Image editor that defers every transform to a remote function.

Transforms are not applied locally. The editor records them in an
:class:`OperationLog`, keeps the resulting size up to date, and ships the whole
log in one request when the image is saved or streamed.
"""

from __future__ import annotations

import logging
import os
from typing import Any, BinaryIO, Callable, Dict, Mapping, Optional, Tuple

from lambdaimage.api._invoker import FunctionInvoker, decode_stream_payload
from lambdaimage.domain.types.image import ImageInfo, OutputDescriptor, PendingSave
from lambdaimage.domain.types.operation import (
    CropOperation,
    FlipOperation,
    ResizeOperation,
    RotateOperation,
)
from lambdaimage.domain.types.request import LambdaRequest, ReturnMode
from lambdaimage.editor.base import ImageEditor
from lambdaimage.io.credentials import EditorConfig
from lambdaimage.io.exceptions import (
    DimensionError,
    KeyMappingError,
    LoadError,
    RemoteExecutionError,
)
from lambdaimage.io.fs import get_file_name_with_ext
from lambdaimage.io.probe import probe
from lambdaimage.io.url import KeyMapper, is_http_url, is_s3_url
from lambdaimage.ops.geometry import resize_dimensions, rotated_size
from lambdaimage.ops.multi_resize import MultiSizeOrchestrator
from lambdaimage.ops.pipeline import OperationLog

logger = logging.getLogger(__name__)


class LambdaImageEditor(ImageEditor):
    """
    Remote-dispatch editor session for a single source image.

    :param file: Local path, URL or ``s3://`` URL of the source.
    :param config: Bucket, credentials and defaults.
    :param invoker: Transport to the remote function, a
        :class:`~lambdaimage.api.lambda_api.LambdaInvoker` when omitted.
    :param key_mapper: Maps filenames to storage keys, built from ``config``
        when omitted.
    :param storage: S3 reader used to probe sources kept in the bucket.
    :param probe_fn: Size probe, :func:`lambdaimage.io.probe.probe` by default.

    A session is not safe for concurrent use. After :meth:`save_async` the
    caller owns the returned future and must not rely on the session state
    until it has been joined.
    """

    def __init__(
        self,
        file: str,
        config: EditorConfig,
        invoker: Optional[FunctionInvoker] = None,
        key_mapper: Optional[KeyMapper] = None,
        storage=None,
        probe_fn: Callable[..., ImageInfo] = probe,
    ):
        super().__init__(
            file,
            default_quality=config.IMAGE_DEFAULT_QUALITY,
            output_formats=config.IMAGE_OUTPUT_FORMATS,
        )
        self._config = config
        self._invoker = invoker
        self._key_mapper = key_mapper or KeyMapper.from_config(config)
        self._storage = storage
        self._probe = probe_fn
        self.source_key: Optional[str] = None
        self.operations = OperationLog()

    @staticmethod
    def test(config: EditorConfig) -> bool:
        """Whether the remote editor can be used with ``config``."""
        return config.is_available()

    # --- Loading --------------------------------------------------
    def _is_reachable(self) -> bool:
        return (
            os.path.isfile(self.file)
            or is_http_url(self.file)
            or is_s3_url(self.file)
            or self._key_mapper.contains_bucket(self.file)
        )

    def _probe_source(self) -> str:
        if os.path.isfile(self.file) or is_http_url(self.file) or is_s3_url(self.file):
            return self.file
        return f"s3://{self._key_mapper.bucket}/{self.source_key}"

    def _get_storage(self):
        if self._storage is None:
            from lambdaimage.api.storage_api import StorageApi

            self._storage = StorageApi(self._config)
        return self._storage

    def load(self) -> None:
        """
        Check the source exists, map it to a storage key and read its size.

        :raises LoadError: the source is missing or has no storage key.
        :raises ProbeError: the size or type of the source cannot be read.
        """
        if not self._is_reachable():
            raise LoadError("File doesn't exist?", data=self.file)

        try:
            self.source_key = self._key_mapper.to_key(self.file)
        except KeyMappingError as exc:
            raise LoadError("File is outside of the image bucket.", data=self.file) from exc

        source = self._probe_source()
        storage = self._get_storage() if is_s3_url(source) else self._storage
        info = self._probe(source, storage)
        self.update_size(info.width, info.height)
        self.mime_type = info.mime_type

        if self._invoker is None:
            from lambdaimage.api.lambda_api import LambdaInvoker

            self._invoker = LambdaInvoker(self._config)

        self.operations.clear()
        self.set_quality()
        logger.info(f"Loaded {self.file} ({info.width}x{info.height}, {info.mime_type})")

    # --- Transforms -----------------------------------------------
    def resize(self, max_w: Optional[int], max_h: Optional[int], crop: bool = False) -> None:
        """
        Resize to fit ``max_w x max_h``; one of them may be ``None`` to keep the
        aspect ratio. With ``crop`` the output is exactly the requested box.

        :raises DimensionError: no output size can be computed.
        """
        if self.size.width == max_w and self.size.height == max_h:
            return

        dims = resize_dimensions(self.size.width, self.size.height, max_w, max_h, crop)
        if dims is None:
            raise DimensionError("Could not calculate resized image dimensions")

        if crop:
            self.crop(dims.src_x, dims.src_y, dims.src_w, dims.src_h, dims.dst_w, dims.dst_h)
            return

        self.operations.add(ResizeOperation(width=dims.dst_w, height=dims.dst_h))
        self.update_size(dims.dst_w, dims.dst_h)

    def multi_resize(self, sizes: Mapping[str, Any]) -> Dict[str, OutputDescriptor]:
        """
        Produce several derived sizes of the current image.

        ``sizes`` maps a label to ``{"width", "height", "crop"}``. Returns the
        metadata of each produced size (without ``path``) by label; see
        :class:`~lambdaimage.ops.multi_resize.MultiSizeOrchestrator` for errors.
        """
        return MultiSizeOrchestrator(self).run(sizes).sizes

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
        """
        Crop a ``src_w x src_h`` region at ``(src_x, src_y)``, optionally scaled
        to ``dst_w x dst_h``. With ``src_abs`` the width and height are read as
        end coordinates.
        """
        if src_abs:
            src_w -= src_x
            src_h -= src_y

        self.operations.add(
            CropOperation(
                src_x=src_x,
                src_y=src_y,
                src_width=src_w,
                src_height=src_h,
                destination_width=dst_w,
                destination_height=dst_h,
            )
        )
        self.update_size(dst_w or src_w, dst_h or src_h)

    def rotate(self, angle: float) -> None:
        """Rotate counter-clockwise by ``angle`` degrees."""
        self.operations.add(RotateOperation(angle=angle))
        self.update_size(*rotated_size(self.size.width, self.size.height, angle))

    def flip(self, horizontal: bool, vertical: bool) -> None:
        self.operations.add(FlipOperation(horizontal=horizontal, vertical=vertical))

    # --- Saving ---------------------------------------------------
    def _build_request(self, new_filename: str, return_mode: ReturnMode = ReturnMode.STORAGE) -> LambdaRequest:
        return LambdaRequest(
            bucket=self._config.AWS_LAMBDA_IMAGE_BUCKET,
            filename=self.source_key,
            new_filename=new_filename,
            quality=self.get_quality(),
            operations=self.operations.to_list(),
            return_mode=return_mode,
        )

    def _get_output_format(
        self, filename: Optional[str], mime_type: Optional[str]
    ) -> Tuple[str, Optional[str], str, str]:
        filename, extension, mime_type = self.get_output_format(filename, mime_type)
        if not filename:
            filename = self.generate_filename(extension=extension)
        return filename, extension, mime_type, self._key_mapper.to_key(filename)

    def _get_output(self, filename: str, mime_type: str) -> OutputDescriptor:
        return OutputDescriptor(
            path=filename,
            file=get_file_name_with_ext(filename),
            width=self.size.width,
            height=self.size.height,
            mime_type=mime_type,
        )

    def _save(self, filename: Optional[str] = None, mime_type: Optional[str] = None) -> OutputDescriptor:
        filename, _, mime_type, key = self._get_output_format(filename, mime_type)
        # the log survives a failed call so the save can be retried
        self._invoker.invoke(self._build_request(key))
        self.operations.clear()
        return self._get_output(filename, mime_type)

    def save(self, filename: Optional[str] = None, mime_type: Optional[str] = None) -> OutputDescriptor:
        """
        Run the queued operations remotely and store the result.

        Afterwards the editor points at the saved image, so later transforms
        start from it.

        :raises KeyMappingError: ``filename`` has no storage key; nothing is sent.
        :raises RemoteExecutionError: the remote call failed; the operation
            log is kept.
        """
        saved = self._save(filename, mime_type)
        self.file = saved.path
        self.mime_type = saved.mime_type
        self.source_key = self._key_mapper.to_key(self.file)
        return saved

    def save_async(self, filename: Optional[str] = None, mime_type: Optional[str] = None) -> PendingSave:
        """
        Like :meth:`save` but returns at once with a future and the final metadata.

        The operation log is cleared immediately, not when the future resolves.
        """
        filename, _, mime_type, key = self._get_output_format(filename, mime_type)
        future = self._invoker.invoke_async(self._build_request(key))
        self.operations.clear()
        return PendingSave(future=future, metadata=self._get_output(filename, mime_type))

    def stream(self, mime_type: Optional[str] = None, output: Optional[BinaryIO] = None) -> bytes:
        """
        Run the queued operations and return the resulting image bytes.

        The bytes are also written to ``output`` when one is given.

        :raises RemoteExecutionError: the remote call failed.
        :raises StreamDecodeError: the returned payload is not valid base64.
        """
        ext = self.get_extension(mime_type) or self.get_extension(self.mime_type)
        filename, _, _ = self.get_output_format(f"stream.{ext}", mime_type)

        try:
            result = self._invoker.invoke(self._build_request(filename, ReturnMode.STREAM))
        except RemoteExecutionError as exc:
            raise RemoteExecutionError(exc.message, data=exc.data, code="image_stream_error") from exc

        data = decode_stream_payload(result.payload)
        if output is not None:
            output.write(data)
        return data

    def close(self) -> None:
        """Release the invoker and storage clients held by this session."""
        if self._invoker is not None:
            self._invoker.close()
        if self._storage is not None:
            self._storage.close()
