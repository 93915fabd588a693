# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Whole-file image tools: bytes in, bytes out.

These chain decode, the bitmap transforms and encode the way the web
tools do, with one :class:`ProcessingOptions` record carrying every knob.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging

from PIL import Image

from pixora.image.bitmap import (
    Color,
    EncodeSpec,
    ImageFormat,
    decode_image,
    encode_image,
)
from pixora.image.filters import FilterSettings, apply_filters
from pixora.image.geometry import Resample, flip, resize, rotate
from pixora.pixora_exceptions import InvalidInputError


log = logging.getLogger("image")

DEFAULT_COMPRESSION_QUALITY = 80


class CompressionLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    MAXIMUM = "maximum"


@dataclass
class ProcessingOptions:
    """Options shared by the whole-file tools.

    Attributes:
        quality: 0 to 100 for the lossy encoders.
        width: target width for a resize, or None.
        height: target height for a resize, or None.
        maintain_aspect_ratio: fit within width and height.
        background: colour to flatten onto for formats without alpha.
        rotation: clockwise degrees.
        flip_horizontal: mirror left-right.
        flip_vertical: mirror top-bottom.
        filters: colour filters to apply, if any.
        compression_level: how hard :func:`compress_image` squeezes.
        resample: resampling filter for resizes.
    """

    quality: float | None = None
    width: int | None = None
    height: int | None = None
    maintain_aspect_ratio: bool = True
    background: Color | None = None
    rotation: float = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    filters: FilterSettings | None = None
    compression_level: CompressionLevel | str | None = None
    resample: Resample | str = Resample.LANCZOS


def compression_quality(
    level: CompressionLevel | str | None, quality: float | None = None
) -> float:
    """Adjust a quality according to a compression level.

    Low compression keeps at least 85, medium stays within 60 to 85,
    high within 40 to 70 and maximum uses at most 50.  With no level
    the quality is used as is.

    Args:
        level: a :class:`CompressionLevel`, its string value, or None.
        quality: 0 to 100, default 80.
    """
    if quality is None:
        quality = DEFAULT_COMPRESSION_QUALITY
    if level is None:
        return quality
    if not isinstance(level, CompressionLevel):
        try:
            level = CompressionLevel(str(level).casefold())
        except ValueError:
            raise InvalidInputError(f'Unknown compression level "{level}"') from None
    if level is CompressionLevel.LOW:
        return max(quality, 85)
    if level is CompressionLevel.MEDIUM:
        return min(max(quality, 60), 85)
    if level is CompressionLevel.HIGH:
        return min(max(quality, 40), 70)
    return min(quality, 50)


def compress_image(
    data: bytes,
    mime_type: str,
    options: ProcessingOptions | None = None,
    output_format: ImageFormat | str = ImageFormat.JPEG,
) -> bytes:
    """Re-encode an image at a lower quality, keeping its dimensions.

    Returns:
        The encoded bytes, JPEG unless another format is asked for.
    """
    if options is None:
        options = ProcessingOptions()
    q = compression_quality(options.compression_level, options.quality)
    img = decode_image(data, mime_type)
    out = encode_image(img, EncodeSpec(output_format, q, options.background))
    log.info(
        "Compressed %dx%d image from %d to %d bytes at quality %g",
        img.width,
        img.height,
        len(data),
        len(out),
        q,
    )
    return out


def transform_image(img: Image.Image, options: ProcessingOptions) -> Image.Image:
    """Resize, flip, rotate then filter, skipping whatever is not asked for."""
    if options.width or options.height:
        img = resize(
            img,
            options.width,
            options.height,
            options.maintain_aspect_ratio,
            algorithm=options.resample,
        )
    if options.flip_horizontal or options.flip_vertical:
        img = flip(img, options.flip_horizontal, options.flip_vertical)
    if options.rotation:
        img = rotate(img, options.rotation, background=options.background)
    if options.filters is not None:
        img = apply_filters(img, options.filters)
    return img


def convert_format(
    data: bytes,
    mime_type: str,
    output_format: ImageFormat | str,
    options: ProcessingOptions | None = None,
) -> bytes:
    """Convert an image to another format, transforming it on the way.

    Args:
        data: the encoded source image.
        mime_type: what the source claims to be.
        output_format: png, jpeg or webp.
        options: optional transforms, quality (default 90) and the
            background for formats without alpha.

    Raises:
        UnsupportedFormatError: unsupported input or output format.
        DecodeError: the source could not be read.
        EncodeError: the result could not be written.
    """
    if options is None:
        options = ProcessingOptions()
    fmt = ImageFormat.from_string(output_format)
    img = transform_image(decode_image(data, mime_type), options)
    quality = 90 if options.quality is None else options.quality
    # PNG keeps its transparency even when a background is given
    background = None if fmt is ImageFormat.PNG else options.background
    out = encode_image(img, EncodeSpec(fmt, quality, background))
    log.info("Converted %s to %s, %dx%d", mime_type, fmt.mime_type, *img.size)
    return out
