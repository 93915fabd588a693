# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Decode encoded images into RGBA bitmaps and encode them back to bytes.

Every bitmap passed around by Pixora is a Pillow image in ``"RGBA"`` mode
with straight (not premultiplied) alpha.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import io
import logging
from typing import Union

import exif
import numpy as np
from PIL import Image, ImageColor, UnidentifiedImageError

from pixora import SupportedMimeTypes
from pixora.pixora_exceptions import (
    DecodeError,
    EncodeError,
    InvalidInputError,
    UnsupportedFormatError,
)


log = logging.getLogger("image")

Color = Union[str, tuple]

# aliases people (and browsers) use for the supported types
_mime_aliases = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
}

_wide_grey_modes = ("I", "I;16", "I;16L", "I;16B", "I;16N")

# Pillow transposes that undo each EXIF orientation
_exif_transposes = {
    exif.Orientation.TOP_RIGHT: (Image.Transpose.FLIP_LEFT_RIGHT,),
    exif.Orientation.BOTTOM_RIGHT: (Image.Transpose.ROTATE_180,),
    exif.Orientation.BOTTOM_LEFT: (Image.Transpose.FLIP_TOP_BOTTOM,),
    exif.Orientation.LEFT_TOP: (Image.Transpose.TRANSPOSE,),
    exif.Orientation.RIGHT_TOP: (Image.Transpose.ROTATE_270,),
    exif.Orientation.RIGHT_BOTTOM: (Image.Transpose.TRANSVERSE,),
    exif.Orientation.LEFT_BOTTOM: (Image.Transpose.ROTATE_90,),
}


class ImageFormat(Enum):
    """Output formats we can encode."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @classmethod
    def from_string(cls, s: str | ImageFormat) -> ImageFormat:
        """Parse "png", "jpg", "image/jpeg", etc, case-insensitive."""
        if isinstance(s, cls):
            return s
        key = str(s).casefold().strip()
        key = key.removeprefix("image/").removeprefix(".")
        if key == "jpg":
            key = "jpeg"
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedFormatError(f'Cannot encode to format "{s}"') from None

    @property
    def has_alpha(self) -> bool:
        return self is not ImageFormat.JPEG

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"


@dataclass
class EncodeSpec:
    """How to encode a bitmap.

    Attributes:
        format: an :class:`ImageFormat` or a string such as ``"jpeg"``.
        quality: 0 to 100, mapped onto the codec's 0.1 to 1.0 scale.
            Ignored by PNG which is lossless.
        background: a colour to flatten onto.  Always used for formats
            without alpha (white if omitted); if given for PNG or WebP,
            the output is flattened as well.
    """

    format: ImageFormat | str = ImageFormat.PNG
    quality: float = 90
    background: Color | None = None


def parse_color(color: Color) -> tuple[int, int, int, int]:
    """Convert a CSS-style colour string or a tuple to an RGBA tuple.

    Raises:
        InvalidInputError: Pillow could not make sense of the colour.
    """
    if isinstance(color, tuple):
        if len(color) == 3:
            return (int(color[0]), int(color[1]), int(color[2]), 255)
        if len(color) == 4:
            return tuple(int(c) for c in color)  # type: ignore[return-value]
        raise InvalidInputError(f"Colour tuple must have 3 or 4 entries: {color}")
    s = str(color).strip()
    if s.startswith("rgba(") and s.endswith(")"):
        # CSS puts alpha on a 0-1 scale, Pillow expects 0-255
        parts = [p.strip() for p in s[5:-1].split(",")]
        if len(parts) == 4:
            try:
                a = float(parts[3])
            except ValueError:
                raise InvalidInputError(f'Invalid colour "{color}"') from None
            s = f"rgba({parts[0]}, {parts[1]}, {parts[2]}, {round(255 * a)})"
    try:
        return ImageColor.getcolor(s, "RGBA")  # type: ignore[return-value]
    except ValueError as err:
        raise InvalidInputError(f'Invalid colour "{color}"') from err


def as_rgba(img: Image.Image) -> Image.Image:
    """Return an RGBA version of the image, a copy if it was RGBA already.

    16-bit greyscale (Pillow modes ``I;16`` and ``I``) is scaled down to
    8 bits first: Pillow's own conversion clips it instead.
    """
    if img.mode == "RGBA":
        return img.copy()
    if img.mode in _wide_grey_modes:
        arr = np.clip(np.asarray(img, dtype=np.int64), 0, 65535) >> 8
        img = Image.fromarray(arr.astype(np.uint8))
    return img.convert("RGBA")


def new_canvas(width: int, height: int, color: Color = (0, 0, 0, 0)) -> Image.Image:
    """Allocate a blank RGBA bitmap.

    Raises:
        InvalidInputError: non-positive dimensions.
    """
    if int(width) != width or int(height) != height or width < 1 or height < 1:
        raise InvalidInputError(f"Invalid bitmap dimensions {width}x{height}")
    return Image.new("RGBA", (int(width), int(height)), parse_color(color))


def flatten(img: Image.Image, background: Color = "#FFFFFF") -> Image.Image:
    """Composite onto an opaque background, returning an RGB image."""
    bg = parse_color(background)
    base = Image.new("RGBA", img.size, bg[:3] + (255,))
    base.alpha_composite(as_rgba(img))
    return base.convert("RGB")


def codec_quality(quality: float | None) -> float:
    """Map a 0-100 quality onto the 0.1 to 1.0 range codecs use."""
    if quality is None:
        quality = 90
    return max(0.1, min(1.0, quality / 100))


def normalize_mime_type(mime_type: str) -> str:
    """Lowercase and de-alias a mime type, checking that we support it.

    Raises:
        UnsupportedFormatError
    """
    m = str(mime_type).casefold().split(";")[0].strip()
    m = _mime_aliases.get(m, m)
    if m not in SupportedMimeTypes:
        raise UnsupportedFormatError(
            f'Unsupported image type "{mime_type}": expected one of '
            + ", ".join(SupportedMimeTypes)
        )
    return m


def decode_image(data: bytes, mime_type: str) -> Image.Image:
    """Decode image bytes into an RGBA bitmap.

    Args:
        data: the encoded image.
        mime_type: what the caller claims the bytes are, one of
            JPEG, PNG, WebP or GIF.  We trust Pillow's sniffing over this
            claim for the actual decode.

    Returns:
        A new RGBA image at the natural dimensions of the input.  For
        JPEG input, any EXIF orientation has been applied.  For animated
        GIF, the first frame.

    Raises:
        UnsupportedFormatError: unsupported mime type.
        InvalidInputError: no bytes, or a zero-sized image.
        DecodeError: the bytes are not a readable image.
    """
    mime_type = normalize_mime_type(mime_type)
    if not data:
        raise InvalidInputError("Cannot decode an empty image")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except UnidentifiedImageError as err:
        raise DecodeError(f"Data is not a recognised image: {err}") from err
    except Image.DecompressionBombError as err:
        raise DecodeError(f"Image is too large to decode: {err}") from err
    except (OSError, SyntaxError, ValueError) as err:
        raise DecodeError(f"Failed to decode image: {err}") from err

    if img.width < 1 or img.height < 1:
        raise InvalidInputError(f"Image has zero dimension: {img.width}x{img.height}")
    actual = f"image/{(img.format or '').lower()}"
    if actual != mime_type:
        log.debug("Declared %s but data looks like %s", mime_type, actual)

    if img.format == "JPEG":
        img = _apply_jpeg_exif_orientation(img, data)
    return as_rgba(img)


def _apply_jpeg_exif_orientation(img: Image.Image, data: bytes) -> Image.Image:
    # Pillow's load does not apply exif orientation but viewers (and
    # browsers) do, so we do it here.
    try:
        im = exif.Image(data)
        if not im.has_exif:
            return img
        o = im.get("orientation")
    except ValueError as err:
        log.warning("Ignoring unreadable EXIF data: %s", err)
        return img
    if o is None or o == exif.Orientation.TOP_LEFT:
        return img
    log.debug("Applying EXIF orientation %s", o)
    for t in _exif_transposes.get(o, ()):
        img = img.transpose(t)
    return img


def encode_image(img: Image.Image, spec: EncodeSpec | None = None) -> bytes:
    """Encode a bitmap to bytes.

    PNG output is deterministic for identical pixels.  JPEG and WebP are
    lossy and reproducible only with the same encoder version.

    Raises:
        UnsupportedFormatError: unknown output format.
        EncodeError: the encoder failed.
    """
    if spec is None:
        spec = EncodeSpec()
    fmt = ImageFormat.from_string(spec.format)
    q = round(100 * codec_quality(spec.quality))

    if spec.background is not None:
        out = flatten(img, spec.background)
    elif not fmt.has_alpha:
        out = flatten(img, "#FFFFFF")
    else:
        out = img if img.mode in ("RGB", "RGBA") else img.convert("RGBA")

    buf = io.BytesIO()
    try:
        if fmt is ImageFormat.PNG:
            out.save(buf, format="PNG")
        elif fmt is ImageFormat.JPEG:
            out.save(buf, format="JPEG", quality=q)
        else:
            out.save(buf, format="WEBP", quality=q)
    except (OSError, ValueError, KeyError) as err:
        raise EncodeError(f"Failed to encode {fmt.value}: {err}") from err
    return buf.getvalue()
