import os
from typing import Optional


def get_file_name(path: str) -> str:
    """
    Extracts file name from a given path.

    :param path: Path to file.
    :type path: str
    :returns: File name without extension
    :rtype: :class:`str`
    :Usage example:

     .. code-block::

        from lambdaimage.io.fs import get_file_name

        get_file_name("/var/uploads/2024/05/photo.jpeg")
        # Output: photo
    """
    return os.path.splitext(os.path.basename(path))[0]


def get_file_ext(path: str) -> str:
    """
    Extracts file extension from a given path.

    :param path: Path to file.
    :type path: str
    :returns: File extension without name
    :rtype: :class:`str`
    :Usage example:

     .. code-block::

        from lambdaimage.io.fs import get_file_ext

        get_file_ext("/var/uploads/2024/05/photo.jpeg")
        # Output: .jpeg
    """
    return os.path.splitext(os.path.basename(path))[1]


def get_file_name_with_ext(path: str) -> str:
    return os.path.basename(path)


def replace_file_ext(path: str, extension: str) -> str:
    """Swap the extension of ``path`` for ``extension`` (given without dot)."""
    return f"{os.path.splitext(path)[0]}.{extension.lstrip('.')}"


def generate_filename(
    file: str,
    suffix: str,
    dest_path: Optional[str] = None,
    extension: Optional[str] = None,
) -> str:
    """
    Builds ``<dir>/<name>-<suffix>.<ext>`` next to ``file`` (or in ``dest_path``).

    URLs keep working since only the last path segment is rewritten.
    """
    directory = os.path.dirname(file)
    if dest_path:
        directory = dest_path.rstrip("/")
    name = get_file_name(file)
    ext = extension.lstrip(".") if extension else get_file_ext(file).lstrip(".")
    new_name = f"{name}-{suffix}.{ext}" if ext else f"{name}-{suffix}"
    return f"{directory}/{new_name}" if directory else new_name
