"""
Fan-out of one source image into several derived sizes.
"""

from __future__ import annotations

import concurrent.futures
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from lambdaimage.domain.types.base import BaseInfo
from lambdaimage.domain.types.image import OutputDescriptor
from lambdaimage.io.exceptions import DimensionError, KeyMappingError, RemoteExecutionError

if TYPE_CHECKING:
    from lambdaimage.editor.lambda_editor import LambdaImageEditor

logger = logging.getLogger(__name__)


class SizeSpec(BaseInfo):
    width: Optional[int] = None
    height: Optional[int] = None
    crop: bool = False

    @field_validator("crop", mode="before")
    @classmethod
    def _missing_crop(cls, value):
        return False if value is None else value


class ResizeBatch(BaseModel):
    """
    Outcome of a multi-size run.

    ``sizes`` holds the metadata of every produced size, ``errors`` the
    message of every size whose save failed, ``skipped`` the labels that
    needed no output (no dimensions, an unreadable entry, the same size as
    the source, or no valid geometry).
    """

    sizes: Dict[str, OutputDescriptor] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)
    skipped: List[str] = Field(default_factory=list)


class MultiSizeOrchestrator:
    """
    Drives an editor through a list of target sizes.

    The first size that differs from the source is saved synchronously so
    its result is known when :meth:`run` returns; every later one is saved
    asynchronously. All in-flight saves are joined before :meth:`run`
    returns, and a failure in one of them does not stop the others from
    being joined.

    Each size starts from the operation log as it was before the run, so
    sibling sizes never see each other's operations.
    """

    def __init__(self, editor: "LambdaImageEditor"):
        self._editor = editor

    def run(self, sizes: Mapping[str, Any]) -> ResizeBatch:
        """
        :param sizes: label -> ``SizeSpec`` or ``{"width", "height", "crop"}``,
            processed in the given order.
        :raises RemoteExecutionError: the synchronous save failed.
        :raises KeyMappingError: the synchronous save has no storage key.
        """
        editor = self._editor
        orig_size = editor.get_size()
        orig_operations = editor.operations.snapshot()
        batch = ResizeBatch()
        pending: List[Tuple[str, concurrent.futures.Future]] = []
        first = True

        propagating = True
        try:
            for label, size_data in sizes.items():
                editor.operations.restore(orig_operations)
                try:
                    target = size_data if isinstance(size_data, SizeSpec) else SizeSpec.model_validate(size_data)
                except ValidationError as exc:
                    logger.debug(f"Skipping size {label!r}: {exc}")
                    batch.skipped.append(label)
                    continue

                if target.width is None and target.height is None:
                    batch.skipped.append(label)
                    continue

                try:
                    try:
                        editor.resize(target.width, target.height, target.crop)
                    except DimensionError as exc:
                        logger.debug(f"Skipping size {label!r}: {exc}")
                        batch.skipped.append(label)
                        continue

                    if editor.get_size() == orig_size:
                        batch.skipped.append(label)
                        continue

                    if first:
                        first = False
                        saved = editor._save()
                        batch.sizes[label] = saved.without_path()
                    else:
                        try:
                            pending_save = editor.save_async()
                        except KeyMappingError as exc:
                            logger.warning(f"Size {label!r} not saved: {exc}")
                            batch.errors[label] = str(exc)
                            continue
                        pending.append((label, pending_save.future))
                        batch.sizes[label] = pending_save.metadata.without_path()
                finally:
                    editor.update_size(orig_size.width, orig_size.height)
            propagating = False
        finally:
            editor.operations.restore(orig_operations)
            self._join(pending, batch, reraise=not propagating)

        return batch

    @staticmethod
    def _join(
        pending: List[Tuple[str, concurrent.futures.Future]], batch: ResizeBatch, reraise: bool = True
    ) -> None:
        """
        Wait for every in-flight save. Remote failures land in ``batch.errors``;
        the first other exception is re-raised unless ``reraise`` is off, in
        which case it is only logged so it cannot mask the error in flight.
        """
        if not pending:
            return
        concurrent.futures.wait([future for _, future in pending])

        unexpected: Optional[BaseException] = None
        for label, future in pending:
            exc = future.exception()
            if exc is None:
                continue
            batch.sizes.pop(label, None)
            batch.errors[label] = str(exc)
            if isinstance(exc, RemoteExecutionError):
                logger.warning(f"Size {label!r} failed: {exc}")
            elif unexpected is None:
                unexpected = exc
            else:
                logger.error(f"Size {label!r} failed: {exc!r}")
        if unexpected is None:
            return
        if reraise:
            raise unexpected
        logger.error(f"Unexpected failure while joining saves: {unexpected!r}", exc_info=unexpected)
