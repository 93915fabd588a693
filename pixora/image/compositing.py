# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Draw decorations onto bitmaps: watermark text, logos and frames.

Each drawing call gets its own parameter record and paints onto a fresh
transparent overlay which is composited onto a copy of the source only
once drawing has succeeded.  The source is never modified.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Iterator

import numpy as np
from PIL import Image, ImageChops, ImageDraw, ImageFilter, ImageFont

from pixora.image.background import remove_background
from pixora.image.bitmap import Color, as_rgba, decode_image, parse_color
from pixora.pixora_exceptions import EmptyTextError, InvalidInputError, PixoraException


log = logging.getLogger("image")

# font names tried in order before falling back to Pillow's own font
_bold_fonts = ("DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf", "Arial Bold.ttf")

WATERMARK_FONT_FRACTION = 0.05
WATERMARK_SHADOW = {"color": "rgba(0, 0, 0, 0.5)", "blur": 4, "offset": (2, 2)}
LOGO_SHADOW = {"color": "rgba(0, 0, 0, 0.15)", "blur": 8, "offset": (0, 4)}

# frame geometry is given for a 1000 pixel wide image and scaled
FRAME_REFERENCE_SIZE = 1000
FRAME_BAR_HEIGHT = 60
FRAME_CORNER_RADIUS = 15
FRAME_FONT_SIZE = 24


class WatermarkPosition(Enum):
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    CENTER = "center"
    DIAGONAL = "diagonal"


class FrameStyle(Enum):
    NONE = "none"
    SQUARE = "square"
    ROUNDED = "rounded"
    BANNER = "banner"


@dataclass
class WatermarkSpec:
    """How to draw watermark text.

    Attributes:
        position: where the text goes; diagonal means centred and
            turned 45 degrees anticlockwise.
        color: text colour.
        opacity: clamped into [0.1, 1.0].
        shadow: draw a soft dark drop shadow under the text.
        scale: multiplies the font size, which is otherwise 5% of the
            smaller image dimension.
    """

    position: WatermarkPosition | str = WatermarkPosition.CENTER
    color: Color = "#ffffff"
    opacity: float = 0.5
    shadow: bool = False
    scale: float = 1.0


@dataclass
class LogoSpec:
    """Where and how to place a logo.

    Attributes:
        x: left edge of the logo in pixels, centred if None.
        y: top edge of the logo in pixels, centred if None.
        width_fraction: logo width as a fraction of the smaller image
            dimension; height follows the logo's aspect ratio.
        margin: padding in pixels of the white card behind the logo.
        border_radius: corner radius of the card; the logo itself is
            clipped with half this radius.
        remove_background: key out the logo's own background first.
    """

    x: float | None = None
    y: float | None = None
    width_fraction: float = 0.2
    margin: float = 8
    border_radius: float = 12
    remove_background: bool = False


@dataclass
class FrameSpec:
    style: FrameStyle | str = FrameStyle.NONE
    color: Color = "#000000"
    text: str | None = None
    text_color: Color = "#FFFFFF"

    def is_visible(self) -> bool:
        return _enum(FrameStyle, self.style) is not FrameStyle.NONE


def _enum(cls, value):
    if isinstance(value, cls):
        return value
    try:
        return cls(str(value).casefold())
    except ValueError:
        raise InvalidInputError(f'Unknown {cls.__name__} "{value}"') from None


def load_font(size: float) -> ImageFont.FreeTypeFont:
    """A bold font at the given pixel size, or Pillow's default font."""
    size = max(1, round(size))
    for name in _bold_fonts:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    log.debug("No bold TrueType font found, using the default font")
    return ImageFont.load_default(size=size)


@contextmanager
def overlay_layer(base: Image.Image) -> Iterator[Image.Image]:
    """A transparent layer the size of base, composited onto it on exit.

    If the block raises, base is left untouched.
    """
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    yield layer
    base.alpha_composite(layer)


def _shadow_of(layer: Image.Image, color: Color, blur: float, offset) -> Image.Image:
    """A blurred, offset silhouette of a layer in the shadow colour."""
    r, g, b, a = parse_color(color)
    alpha = layer.getchannel("A").point(lambda v: v * a // 255)
    shadow = Image.new("RGBA", layer.size, (r, g, b, 0))
    shadow.putalpha(alpha)
    moved = Image.new("RGBA", layer.size, (0, 0, 0, 0))
    moved.paste(shadow, (int(offset[0]), int(offset[1])))
    # canvas shadow blur is roughly twice the Gaussian sigma
    return moved.filter(ImageFilter.GaussianBlur(radius=blur / 2))


def _scale_alpha(layer: Image.Image, factor: float) -> Image.Image:
    arr = np.asarray(layer).copy()
    arr[..., 3] = np.rint(arr[..., 3] * factor).astype(np.uint8)
    return Image.fromarray(arr)


def _text_layer(size, xy, text, font, fill, anchor, shadow: bool) -> Image.Image:
    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    ImageDraw.Draw(layer).text(xy, text, font=font, fill=fill, anchor=anchor)
    if not shadow:
        return layer
    out = _shadow_of(layer, **WATERMARK_SHADOW)
    out.alpha_composite(layer)
    return out


def draw_watermark_text(
    src: Image.Image, text: str, spec: WatermarkSpec | None = None
) -> Image.Image:
    """Draw semi-transparent text over an image.

    Args:
        src: the source bitmap, not modified.
        text: what to write.
        spec: position, colour, opacity and so on, defaults if omitted.

    Returns:
        A new RGBA bitmap the same size as the source.

    Raises:
        EmptyTextError: text is empty or only whitespace.
    """
    if not text or not text.strip():
        raise EmptyTextError()
    if spec is None:
        spec = WatermarkSpec()
    position = _enum(WatermarkPosition, spec.position)
    opacity = max(0.1, min(1.0, float(spec.opacity)))
    out = as_rgba(src)
    w, h = out.size
    fs = min(w, h) * WATERMARK_FONT_FRACTION * spec.scale
    font = load_font(fs)
    fill = parse_color(spec.color)

    if position is WatermarkPosition.DIAGONAL:
        # draw centred on a square big enough for any rotation, turn it
        # and cut the image-sized middle back out
        d = math.ceil(math.hypot(w, h))
        layer = _text_layer((d, d), (d / 2, d / 2), text, font, fill, "mm", spec.shadow)
        layer = layer.rotate(45, resample=Image.Resampling.BICUBIC)
        left, top = (d - w) // 2, (d - h) // 2
        layer = layer.crop((left, top, left + w, top + h))
    else:
        xy, anchor = {
            WatermarkPosition.TOP_LEFT: ((fs, 2 * fs), "lm"),
            WatermarkPosition.TOP_RIGHT: ((w - fs, 2 * fs), "rm"),
            WatermarkPosition.BOTTOM_LEFT: ((fs, h - fs), "lm"),
            WatermarkPosition.BOTTOM_RIGHT: ((w - fs, h - fs), "rm"),
            WatermarkPosition.CENTER: ((w / 2, h / 2), "mm"),
        }[position]
        layer = _text_layer(out.size, xy, text, font, fill, anchor, spec.shadow)

    log.debug('Watermarking "%s" at %s, opacity %g', text, position.value, opacity)
    with overlay_layer(out) as overlay:
        overlay.alpha_composite(_scale_alpha(layer, opacity))
    return out


def _rounded_mask(size: tuple[int, int], radius: float) -> Image.Image:
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).rounded_rectangle(
        (0, 0, size[0] - 1, size[1] - 1), radius=max(0, radius), fill=255
    )
    return mask


def _prepare_logo(
    logo: Image.Image | bytes, width: int, spec: LogoSpec, mime_type: str
) -> Image.Image:
    if isinstance(logo, (bytes, bytearray)):
        img = decode_image(bytes(logo), mime_type)
    else:
        img = as_rgba(logo)
    if spec.remove_background:
        img = remove_background(img)
    height = max(1, round(width * img.height / img.width))
    img = img.resize((width, height), Image.Resampling.LANCZOS)
    clip = _rounded_mask(img.size, spec.border_radius / 2)
    img.putalpha(ImageChops.multiply(img.getchannel("A"), clip))
    return img


def draw_logo(
    src: Image.Image,
    logo: Image.Image | bytes,
    spec: LogoSpec | None = None,
    *,
    mime_type: str = "image/png",
) -> Image.Image:
    """Place a logo on a white rounded card over the image.

    A logo that cannot be used (undecodable bytes, say) is not an
    error: a warning is logged and a copy of the source comes back
    without a logo.

    Args:
        src: the source bitmap, not modified.
        logo: a bitmap, or encoded image bytes.
        spec: placement and styling, defaults if omitted.

    Keyword Args:
        mime_type: what the logo bytes claim to be.

    Returns:
        A new RGBA bitmap the same size as the source.
    """
    if spec is None:
        spec = LogoSpec()
    out = as_rgba(src)
    width = max(1, round(min(out.size) * spec.width_fraction))
    try:
        img = _prepare_logo(logo, width, spec, mime_type)
    except (PixoraException, OSError, ValueError) as err:
        log.warning("Leaving out logo that could not be used: %s", err)
        return out

    lw, lh = img.size
    x = spec.x if spec.x is not None else (out.width - lw) / 2
    y = spec.y if spec.y is not None else (out.height - lh) / 2
    m = spec.margin
    with overlay_layer(out) as card:
        ImageDraw.Draw(card).rounded_rectangle(
            (x - m, y - m, x + lw + m - 1, y + lh + m - 1),
            radius=spec.border_radius,
            fill=(255, 255, 255, 255),
        )
        shadow = _shadow_of(card, **LOGO_SHADOW)
        shadow.alpha_composite(card)
        card.paste(shadow)
    with overlay_layer(out) as layer:
        layer.paste(img, (round(x), round(y)))
    return out


def draw_frame(src: Image.Image, spec: FrameSpec | None = None) -> Image.Image:
    """Draw bars across the image, with an optional caption.

    Square and rounded frames have a bar at the top and the bottom,
    banner only at the bottom.  Bars are 60 pixels high on a 1000 pixel
    image and scale with it.  The caption is always centred in the
    bottom bar.

    Returns:
        A new RGBA bitmap the same size as the source.
    """
    if spec is None:
        spec = FrameSpec()
    style = _enum(FrameStyle, spec.style)
    out = as_rgba(src)
    if style is FrameStyle.NONE:
        return out
    w, h = out.size
    scale = min(w, h) / FRAME_REFERENCE_SIZE
    bar = max(1, round(FRAME_BAR_HEIGHT * scale))
    fill = parse_color(spec.color)

    with overlay_layer(out) as layer:
        draw = ImageDraw.Draw(layer)
        bars = [(0, h - bar, w - 1, h - 1)]
        if style is not FrameStyle.BANNER:
            bars.insert(0, (0, 0, w - 1, bar - 1))
        for box in bars:
            if style is FrameStyle.ROUNDED:
                draw.rounded_rectangle(box, radius=FRAME_CORNER_RADIUS * scale, fill=fill)
            else:
                draw.rectangle(box, fill=fill)
        if spec.text:
            font = load_font(FRAME_FONT_SIZE * scale)
            draw.text(
                (w / 2, h - bar / 2),
                spec.text,
                font=font,
                fill=parse_color(spec.text_color),
                anchor="mm",
            )
    log.debug("Drew %s frame with %d pixel bars", style.value, bar)
    return out
