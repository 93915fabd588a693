# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Geometric transforms: resize, crop, rotate and flip.

These are pure functions of their arguments: the source bitmap is never
modified and a new RGBA bitmap is always returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math

from PIL import Image

from pixora.image.bitmap import Color, as_rgba, parse_color
from pixora.pixora_exceptions import InvalidCropError, InvalidInputError


log = logging.getLogger("image")

# smallest width or height of a crop, in percent of the source
MIN_CROP_PERCENT = 1.0


class Resample(Enum):
    """Resampling filters, from the lowest quality tier to the highest."""

    NEAREST = "nearest"
    BILINEAR = "bilinear"
    BICUBIC = "bicubic"
    LANCZOS = "lanczos"

    @property
    def pil_filter(self) -> Image.Resampling:
        return {
            Resample.NEAREST: Image.Resampling.NEAREST,
            Resample.BILINEAR: Image.Resampling.BILINEAR,
            Resample.BICUBIC: Image.Resampling.BICUBIC,
            Resample.LANCZOS: Image.Resampling.LANCZOS,
        }[self]


@dataclass
class CropArea:
    """A crop rectangle given in percent of the source dimensions.

    The defaults select the central 80% of the image.
    """

    x: float = 10.0
    y: float = 10.0
    width: float = 80.0
    height: float = 80.0

    def clamped(self) -> CropArea:
        """Position into [0, 100], size into [MIN_CROP_PERCENT, 100]."""
        return CropArea(
            x=max(0.0, min(100.0, float(self.x))),
            y=max(0.0, min(100.0, float(self.y))),
            width=max(MIN_CROP_PERCENT, min(100.0, float(self.width))),
            height=max(MIN_CROP_PERCENT, min(100.0, float(self.height))),
        )


def _resample(algorithm: Resample | str) -> Image.Resampling:
    if isinstance(algorithm, str):
        try:
            algorithm = Resample(algorithm.casefold())
        except ValueError:
            raise InvalidInputError(f'Unknown resampling "{algorithm}"') from None
    return algorithm.pil_filter


def fit_dimensions(
    src_width: int,
    src_height: int,
    width: float | None = None,
    height: float | None = None,
    maintain_aspect_ratio: bool = True,
) -> tuple[int, int]:
    """Compute the output size of a resize.

    With only one target dimension the other follows the source aspect
    ratio.  With both and ``maintain_aspect_ratio``, the result fits
    within the box: the dimension that would overshoot the ratio is
    shrunk.  Results are rounded and never less than 1.

    Returns:
        ``(width, height)``, the source size if neither target is given.
    """
    if width is not None and width <= 0:
        raise InvalidInputError(f"Target width must be positive, not {width}")
    if height is not None and height <= 0:
        raise InvalidInputError(f"Target height must be positive, not {height}")
    aspect = src_width / src_height
    if width and height:
        if maintain_aspect_ratio:
            if width / height > aspect:
                width = height * aspect
            else:
                height = width / aspect
    elif width:
        height = width / aspect
    elif height:
        width = height * aspect
    else:
        return src_width, src_height
    return max(1, round(width)), max(1, round(height))


def resize(
    src: Image.Image,
    width: float | None = None,
    height: float | None = None,
    maintain_aspect_ratio: bool = True,
    *,
    algorithm: Resample | str = Resample.LANCZOS,
) -> Image.Image:
    """Resize a bitmap.

    Args:
        src: the source bitmap.
        width: target width in pixels, or None.
        height: target height in pixels, or None.
        maintain_aspect_ratio: when both targets are given, fit within
            them rather than stretching.

    Keyword Args:
        algorithm: resampling filter, Lanczos by default.  Nearest
            neighbour is only for the lowest quality tier.

    Returns:
        A new RGBA bitmap; a plain copy if no target was given or the
        size is unchanged.
    """
    size = fit_dimensions(src.width, src.height, width, height, maintain_aspect_ratio)
    if size == src.size:
        return as_rgba(src)
    log.debug("Resizing %dx%d to %dx%d", *src.size, *size)
    return as_rgba(src).resize(size, _resample(algorithm))


def upscale(
    src: Image.Image, factor: float | str, *, algorithm: Resample | str = "lanczos"
) -> Image.Image:
    """Enlarge (or shrink) by a scale factor such as ``2`` or ``"1.5x"``."""
    if isinstance(factor, str):
        try:
            factor = float(factor.casefold().rstrip("x"))
        except ValueError:
            raise InvalidInputError(f'Invalid scale factor "{factor}"') from None
    if factor <= 0:
        raise InvalidInputError(f"Scale factor must be positive, not {factor}")
    w = max(1, round(src.width * factor))
    h = max(1, round(src.height * factor))
    return resize(src, w, h, False, algorithm=algorithm)


def crop_rectangle(
    src_width: int, src_height: int, area: CropArea
) -> tuple[int, int, int, int]:
    """Convert a percentage crop area to a pixel box within the source.

    Returns:
        ``(left, top, right, bottom)`` suitable for ``Image.crop``, at
        least 1x1.

    Raises:
        InvalidCropError: the clamped rectangle lies outside the image.
    """
    a = area.clamped()
    left = round(a.x / 100 * src_width)
    top = round(a.y / 100 * src_height)
    if left >= src_width or top >= src_height:
        raise InvalidCropError(
            f"Crop area starting at ({a.x}%, {a.y}%) has no area left in the image"
        )
    w = min(max(1, round(a.width / 100 * src_width)), src_width - left)
    h = min(max(1, round(a.height / 100 * src_height)), src_height - top)
    return (left, top, left + w, top + h)


def crop(src: Image.Image, area: CropArea | None = None) -> Image.Image:
    """Crop to a rectangle given in percent of the source dimensions.

    Args:
        src: the source bitmap.
        area: the crop area; out of range values are clamped.  If
            omitted, the central 80% is kept.

    Raises:
        InvalidCropError: nothing is left after clamping.
    """
    if area is None:
        area = CropArea()
    box = crop_rectangle(src.width, src.height, area)
    log.debug("Cropping %dx%d to box %s", *src.size, box)
    return as_rgba(src).crop(box)


def crop_pixels(src: Image.Image, x: int, y: int, width: int, height: int) -> Image.Image:
    """Crop to a rectangle given in pixels, clamped to the source."""
    if width < 1 or height < 1:
        raise InvalidCropError(f"Crop size {width}x{height} has no area")
    area = CropArea(
        x=100 * x / src.width,
        y=100 * y / src.height,
        width=100 * width / src.width,
        height=100 * height / src.height,
    )
    return crop(src, area)


def parse_aspect_ratio(ratio: str) -> float | None:
    """Parse ``"16:9"`` or ``"1.91:1"`` to a number, ``"free"`` to None."""
    if ratio.casefold() == "free":
        return None
    try:
        a, b = ratio.split(":")
        r = float(a) / float(b)
    except (ValueError, ZeroDivisionError):
        raise InvalidInputError(f'Invalid aspect ratio "{ratio}"') from None
    if r <= 0:
        raise InvalidInputError(f'Invalid aspect ratio "{ratio}"')
    return r


def crop_area_for_aspect(src_width: int, src_height: int, ratio: str) -> CropArea:
    """The largest centred crop area with the given aspect ratio.

    Args:
        src_width: width of the image to be cropped.
        src_height: height of the image to be cropped.
        ratio: such as ``"1:1"``, ``"16:9"``; ``"free"`` gives the
            default crop area.
    """
    r = parse_aspect_ratio(ratio)
    if r is None:
        return CropArea()
    if src_width / src_height > r:
        w = 100 * (src_height * r) / src_width
        h = 100.0
    else:
        w = 100.0
        h = 100 * (src_width / r) / src_height
    return CropArea(x=(100 - w) / 2, y=(100 - h) / 2, width=w, height=h)


def rotated_size(width: int, height: int, angle: float) -> tuple[int, int]:
    """Size of the bounding box of a rectangle rotated by angle degrees."""
    t = math.radians(angle)
    c = abs(math.cos(t))
    s = abs(math.sin(t))
    # round first: cos(90) is not quite zero
    w = math.ceil(round(width * c + height * s, 6))
    h = math.ceil(round(width * s + height * c, 6))
    return max(1, w), max(1, h)


def rotate(
    src: Image.Image,
    angle: float,
    *,
    background: Color | None = None,
    algorithm: Resample | str = Resample.BICUBIC,
) -> Image.Image:
    """Rotate clockwise about the centre, enlarging the canvas to fit.

    Args:
        src: the source bitmap.
        angle: clockwise rotation in degrees.

    Keyword Args:
        background: colour for the newly exposed corners, transparent
            if omitted.
        algorithm: resampling filter for angles other than multiples
            of 90, which are exact.

    Returns:
        A new RGBA bitmap of size :func:`rotated_size`.
    """
    img = as_rgba(src)
    fill = parse_color(background) if background is not None else (0, 0, 0, 0)
    a = angle % 360
    if a == 0:
        return img
    # Note PIL transposes are CCW
    exact = {
        90: Image.Transpose.ROTATE_270,
        180: Image.Transpose.ROTATE_180,
        270: Image.Transpose.ROTATE_90,
    }
    if a in exact:
        return img.transpose(exact[a])

    out_w, out_h = rotated_size(img.width, img.height, a)
    t = math.radians(a)
    c, s = math.cos(t), math.sin(t)
    cxo, cyo = out_w / 2, out_h / 2
    cxi, cyi = img.width / 2, img.height / 2
    # inverse map from output pixel to source pixel (y axis points down)
    coeffs = (
        c,
        s,
        cxi - c * cxo - s * cyo,
        -s,
        c,
        cyi + s * cxo - c * cyo,
    )
    resample = _resample(algorithm)
    if resample not in (Image.Resampling.NEAREST, Image.Resampling.BILINEAR):
        # affine transforms offer nothing better than bicubic
        resample = Image.Resampling.BICUBIC
    log.debug("Rotating %dx%d by %g to %dx%d", *img.size, a, out_w, out_h)
    return img.transform(
        (out_w, out_h),
        Image.Transform.AFFINE,
        coeffs,
        resample=resample,
        fillcolor=fill,
    )


def flip(src: Image.Image, horizontal: bool = False, vertical: bool = False) -> Image.Image:
    """Mirror left-right and/or top-bottom."""
    img = as_rgba(src)
    if horizontal:
        img = img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    if vertical:
        img = img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
    return img
