"""
Output format negotiation: which filename and mime type a save produces.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from lambdaimage.io.fs import get_file_ext, replace_file_ext

SUPPORTED_MIME_TYPES: Dict[str, str] = {
    "image/gif": "gif",
    "image/jpeg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/svg+xml": "svg",
    "image/vnd.wap.wbmp": "wbmp",
    "image/webp": "webp",
}

_EXTENSION_ALIASES: Dict[str, str] = {
    "jpeg": "image/jpeg",
    "jpe": "image/jpeg",
}


def supports_mime_type(mime_type: Optional[str]) -> bool:
    return mime_type in SUPPORTED_MIME_TYPES


def get_extension(mime_type: Optional[str]) -> Optional[str]:
    if not mime_type:
        return None
    return SUPPORTED_MIME_TYPES.get(mime_type)


def get_mime_type(extension: Optional[str]) -> Optional[str]:
    if not extension:
        return None
    extension = extension.lstrip(".").lower()
    if extension in _EXTENSION_ALIASES:
        return _EXTENSION_ALIASES[extension]
    for mime_type, ext in SUPPORTED_MIME_TYPES.items():
        if ext == extension:
            return mime_type
    return None


def get_output_format(
    filename: Optional[str],
    mime_type: Optional[str],
    default_mime_type: str,
    output_formats: Optional[Dict[str, str]] = None,
) -> Tuple[Optional[str], Optional[str], str]:
    """
    Decide the output ``(filename, extension, mime_type)`` of a save.

    An explicit ``mime_type`` wins over the extension of ``filename``, which
    wins over ``default_mime_type``. ``output_formats`` can then remap the
    chosen type (``{"image/png": "image/webp"}``). A type this editor cannot
    write falls back to the default, and a filename whose extension no longer
    matches gets it replaced.
    """
    output_formats = output_formats or {}
    file_ext = get_file_ext(filename).lstrip(".").lower() if filename else None
    file_mime = get_mime_type(file_ext) if file_ext else None

    if not mime_type:
        mime_type = file_mime or default_mime_type

    mime_type = output_formats.get(mime_type, mime_type)

    if not supports_mime_type(mime_type):
        mime_type = default_mime_type

    new_ext = get_extension(mime_type)

    if filename and new_ext and get_mime_type(file_ext) != mime_type:
        filename = replace_file_ext(filename, new_ext)

    return filename, new_ext, mime_type
