"""
Reads width, height and mime type of a source image.
"""

from __future__ import annotations

import io
import logging
import os
from typing import TYPE_CHECKING, Optional

import requests
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from lambdaimage.domain.types.image import ImageInfo
from lambdaimage.io.exceptions import ProbeError
from lambdaimage.io.url import is_http_url, is_s3_url, parse_s3_url

if TYPE_CHECKING:
    from lambdaimage.api.storage_api import StorageApi

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = (5, 30)


def _read_info(fp, file: str) -> ImageInfo:
    try:
        with Image.open(fp) as img:
            width, height = img.size
            mime_type = Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError) as exc:
        raise ProbeError("Could not read image size.", data=file) from exc
    if not mime_type:
        raise ProbeError("Could not read image type.", data=file)
    return ImageInfo(width=width, height=height, mime_type=mime_type)


def _fetch_url(url: str) -> bytes:
    try:
        response = requests.get(url, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ProbeError("Could not read image size.", data=url) from exc
    return response.content


def _fetch_s3(url: str, storage: Optional["StorageApi"]) -> bytes:
    if storage is None:
        raise ProbeError("No storage client configured for S3 sources.", data=url)
    bucket, key = parse_s3_url(url)
    if not bucket or not key:
        raise ProbeError("Malformed S3 URL.", data=url)
    try:
        return storage.get_bytes(bucket, key)
    except (BotoCoreError, ClientError) as exc:
        raise ProbeError("Could not read image size.", data=url) from exc


def probe(file: str, storage: Optional["StorageApi"] = None) -> ImageInfo:
    """
    Probe ``file`` with Pillow.

    Local paths are opened in place; ``http(s)`` URLs are downloaded with
    requests and ``s3://`` URLs through ``storage``. Any failure is reported
    as :class:`ProbeError`.
    """
    logger.debug(f"Probing {file}")
    if is_http_url(file):
        return _read_info(io.BytesIO(_fetch_url(file)), file)
    if is_s3_url(file):
        return _read_info(io.BytesIO(_fetch_s3(file, storage)), file)
    if not os.path.isfile(file):
        raise ProbeError("Could not read image size.", data=file)
    return _read_info(file, file)
