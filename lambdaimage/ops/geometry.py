"""
Pure geometry for resize and crop requests.

Nothing here performs I/O; the editor uses these helpers to know the size
of its output before the remote function has produced it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ResizeDimensions:
    dst_x: int
    dst_y: int
    src_x: int
    src_y: int
    dst_w: int
    dst_h: int
    src_w: int
    src_h: int


def _round(value: float) -> int:
    # half away from zero, so 0.5 px always rounds up for positive sizes
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def _fuzzy_match(expected: float, actual: float, precision: float = 1) -> bool:
    return abs(expected - actual) <= precision


def constrain_dimensions(
    current_w: int,
    current_h: int,
    max_w: Optional[int] = None,
    max_h: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Scale ``current_w x current_h`` down to fit inside ``max_w x max_h``,
    keeping the aspect ratio. A missing or zero bound is unconstrained.
    """
    max_w = max_w or 0
    max_h = max_h or 0
    if not max_w and not max_h:
        return current_w, current_h

    width_ratio = height_ratio = 1.0
    did_width = did_height = False

    if max_w > 0 and current_w > 0 and current_w > max_w:
        width_ratio = max_w / current_w
        did_width = True
    if max_h > 0 and current_h > 0 and current_h > max_h:
        height_ratio = max_h / current_h
        did_height = True

    smaller_ratio = min(width_ratio, height_ratio)
    larger_ratio = max(width_ratio, height_ratio)

    if _round(current_w * larger_ratio) > max_w or _round(current_h * larger_ratio) > max_h:
        ratio = smaller_ratio
    else:
        ratio = larger_ratio

    w = max(1, _round(current_w * ratio))
    h = max(1, _round(current_h * ratio))

    # off-by-one from float rounding
    if did_width and w == max_w - 1:
        w = max_w
    if did_height and h == max_h - 1:
        h = max_h

    return w, h


def resize_dimensions(
    orig_w: int,
    orig_h: int,
    dest_w: Optional[int],
    dest_h: Optional[int],
    crop: bool = False,
) -> Optional[ResizeDimensions]:
    """
    Work out the source rectangle and output size for a resize request.

    With ``crop`` the output is exactly the requested box (never larger than
    the original) cut from the centre of the source; without it the image is
    scaled to fit inside the box. Returns ``None`` when there is no useful
    answer: non-positive sizes, or an output that would be the same as the
    input within one pixel.
    """
    dest_w = dest_w or 0
    dest_h = dest_h or 0
    if orig_w <= 0 or orig_h <= 0:
        return None
    if dest_w <= 0 and dest_h <= 0:
        return None

    if crop:
        aspect_ratio = orig_w / orig_h
        new_w = min(dest_w, orig_w)
        new_h = min(dest_h, orig_h)

        if not new_w:
            new_w = _round(new_h * aspect_ratio)
        if not new_h:
            new_h = _round(new_w / aspect_ratio)
        if new_w <= 0 or new_h <= 0:
            return None

        size_ratio = max(new_w / orig_w, new_h / orig_h)
        crop_w = _round(new_w / size_ratio)
        crop_h = _round(new_h / size_ratio)

        src_x = (orig_w - crop_w) // 2
        src_y = (orig_h - crop_h) // 2
    else:
        crop_w, crop_h = orig_w, orig_h
        src_x = src_y = 0
        new_w, new_h = constrain_dimensions(orig_w, orig_h, dest_w, dest_h)

    if _fuzzy_match(new_w, orig_w) and _fuzzy_match(new_h, orig_h):
        return None

    return ResizeDimensions(
        dst_x=0,
        dst_y=0,
        src_x=int(src_x),
        src_y=int(src_y),
        dst_w=int(new_w),
        dst_h=int(new_h),
        src_w=int(crop_w),
        src_h=int(crop_h),
    )


def rotated_size(width: int, height: int, angle: float) -> Tuple[int, int]:
    """
    Size after rotating by ``angle`` degrees.

    Only quarter turns swap the sides. Any other angle keeps the size as is;
    the bounding box growth of a free rotation is not computed.
    """
    degrees = abs(angle)
    if degrees % 180 == 0:
        return width, height
    if degrees % 90 == 0:
        return height, width
    return width, height
