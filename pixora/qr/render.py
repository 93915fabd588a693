# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Render a QR symbol to a bitmap, with optional styling.

The background (a solid colour or a gradient swatch) is painted first.
Dark modules are then drawn in the solid foreground colour through a
mask.  Shaped modules and eyes are drawn as real shapes on a mask at
several times the output resolution, then reduced, which antialiases
the edges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging

import numpy as np
from PIL import Image, ImageDraw

from pixora.image.bitmap import Color, parse_color
from pixora.pixora_exceptions import InvalidInputError
from pixora.qr.symbol import FINDER_SIZE, QRSymbol


log = logging.getLogger("qr")

SUPERSAMPLE = 4


class BodyShape(Enum):
    SQUARE = "square"
    ROUNDED = "rounded"
    DOTS = "dots"
    EXTRA_ROUNDED = "extra-rounded"
    CLASSY = "classy"
    CLASSY_ROUNDED = "classy-rounded"


class EyeShape(Enum):
    SQUARE = "square"
    ROUNDED = "rounded"
    EXTRA_ROUNDED = "extra-rounded"
    LEAF = "leaf"
    CIRCLE = "circle"


class GradientType(Enum):
    NONE = "none"
    LINEAR = "linear"
    RADIAL = "radial"


@dataclass
class Gradient:
    """A background gradient with evenly spaced colour stops.

    Linear runs from the top-left corner to the bottom-right; radial
    from the centre out to half the width.
    """

    type: GradientType | str = GradientType.LINEAR
    colors: list[Color] = field(default_factory=list)


@dataclass
class QRStyle:
    foreground: Color = "#000000"
    background: Color = "#FFFFFF"
    gradient: Gradient | None = None
    body_shape: BodyShape | str = BodyShape.SQUARE
    eye_frame_shape: EyeShape | str = EyeShape.SQUARE
    eye_ball_shape: EyeShape | str = EyeShape.SQUARE

    def normalized(self) -> QRStyle:
        """A copy with the string fields turned into enums."""
        g = self.gradient
        if g is not None:
            g = Gradient(_enum(GradientType, g.type), list(g.colors))
        return QRStyle(
            foreground=self.foreground,
            background=self.background,
            gradient=g,
            body_shape=_enum(BodyShape, self.body_shape),
            eye_frame_shape=_enum(EyeShape, self.eye_frame_shape),
            eye_ball_shape=_enum(EyeShape, self.eye_ball_shape),
        )

    def has_gradient(self) -> bool:
        g = self.gradient
        return (
            g is not None
            and _enum(GradientType, g.type) is not GradientType.NONE
            and len(g.colors) > 0
        )

    def has_shapes(self) -> bool:
        return (
            _enum(BodyShape, self.body_shape) is not BodyShape.SQUARE
            or _enum(EyeShape, self.eye_frame_shape) is not EyeShape.SQUARE
            or _enum(EyeShape, self.eye_ball_shape) is not EyeShape.SQUARE
        )


def _enum(cls, value):
    if isinstance(value, cls):
        return value
    try:
        return cls(str(value).casefold())
    except ValueError:
        raise InvalidInputError(f'Unknown {cls.__name__} "{value}"') from None


def gradient_swatch(size: int, gradient: Gradient) -> Image.Image:
    """A square RGBA image filled with the gradient."""
    kind = _enum(GradientType, gradient.type)
    colors = np.array([parse_color(c) for c in gradient.colors], dtype=np.float64)
    if len(colors) == 1:
        return Image.new("RGBA", (size, size), tuple(int(c) for c in colors[0]))
    # pixel centres
    yy, xx = np.mgrid[0:size, 0:size] + 0.5
    if kind is GradientType.RADIAL:
        t = np.hypot(xx - size / 2, yy - size / 2) / (size / 2)
    else:
        t = (xx + yy) / (2 * size)
    t = np.clip(t, 0.0, 1.0)
    stops = np.linspace(0.0, 1.0, len(colors))
    out = np.empty((size, size, 4), dtype=np.uint8)
    for ch in range(4):
        out[..., ch] = np.rint(np.interp(t, stops, colors[:, ch])).astype(np.uint8)
    return Image.fromarray(out)


def _corner_radii(symbol: QRSymbol, row: int, col: int, shape: BodyShape, s: float):
    """Radius at each corner (tl, tr, br, bl) of one body module.

    Only corners where neither side neighbour is dark get rounded, so
    runs of modules join up smoothly.
    """
    up = symbol.is_dark(row - 1, col)
    down = symbol.is_dark(row + 1, col)
    left = symbol.is_dark(row, col - 1)
    right = symbol.is_dark(row, col + 1)
    free = (not (up or left), not (up or right), not (down or right), not (down or left))
    if shape is BodyShape.ROUNDED:
        r = (0.25 * s,) * 4
    elif shape is BodyShape.EXTRA_ROUNDED:
        r = (0.5 * s,) * 4
    elif shape is BodyShape.CLASSY:
        r = (0.5 * s, 0, 0.5 * s, 0)
    elif shape is BodyShape.CLASSY_ROUNDED:
        r = (0.5 * s, 0.2 * s, 0.5 * s, 0.2 * s)
    else:
        r = (0, 0, 0, 0)
    return tuple(ri if f else 0 for ri, f in zip(r, free))


def _draw_box(draw: ImageDraw.ImageDraw, box, radii, fill: int) -> None:
    """A rectangle with its own radius at each corner."""
    x0, y0, x1, y1 = box
    if x1 < x0 or y1 < y0:
        return
    draw.rectangle(box, fill=fill)
    clear = 255 - fill
    tl, tr, br, bl = radii
    # pieslice angles run clockwise from three o'clock
    corners = (
        (tl, (x0, y0), (x0, y0, x0 + 2 * tl, y0 + 2 * tl), 180, 270),
        (tr, (x1 - tr, y0), (x1 - 2 * tr, y0, x1, y0 + 2 * tr), 270, 360),
        (br, (x1 - br, y1 - br), (x1 - 2 * br, y1 - 2 * br, x1, y1), 0, 90),
        (bl, (x0, y1 - bl), (x0, y1 - 2 * bl, x0 + 2 * bl, y1), 90, 180),
    )
    for r, (cx, cy), ellipse, start, end in corners:
        if r <= 0:
            continue
        draw.rectangle((cx, cy, cx + r, cy + r), fill=clear)
        draw.pieslice(ellipse, start, end, fill=fill)


def _draw_eye_part(draw, box, shape: EyeShape, fill: int) -> None:
    side = box[2] - box[0]
    if side < 0:
        return
    if shape is EyeShape.CIRCLE:
        draw.ellipse(box, fill=fill)
        return
    radii = {
        EyeShape.SQUARE: (0, 0, 0, 0),
        EyeShape.ROUNDED: (0.2 * side,) * 4,
        EyeShape.EXTRA_ROUNDED: (0.35 * side,) * 4,
        EyeShape.LEAF: (0.5 * side, 0, 0.5 * side, 0),
    }[shape]
    _draw_box(draw, box, radii, fill)


def module_mask(symbol: QRSymbol, width: int, margin: int, style: QRStyle) -> Image.Image:
    """Coverage of the dark modules, as an "L" image of the output size."""
    style = style.normalized()
    ss = SUPERSAMPLE if style.has_shapes() else 1
    big = width * ss
    n = symbol.size
    mp = big / (n + 2 * margin)

    def edge(k: float) -> int:
        return round((k + margin) * mp)

    mask = Image.new("L", (big, big), 0)
    draw = ImageDraw.Draw(mask)
    for row in range(n):
        for col in range(n):
            if not symbol.matrix[row][col] or symbol.in_finder(row, col):
                continue
            box = (edge(col), edge(row), edge(col + 1) - 1, edge(row + 1) - 1)
            if box[2] < box[0]:
                continue
            if style.body_shape is BodyShape.DOTS:
                inset = 0.1 * (box[2] - box[0])
                draw.ellipse(
                    (box[0] + inset, box[1] + inset, box[2] - inset, box[3] - inset),
                    fill=255,
                )
            else:
                radii = _corner_radii(symbol, row, col, style.body_shape, box[2] - box[0])
                _draw_box(draw, box, radii, 255)

    for r, c in symbol.finder_origins():
        outer = (edge(c), edge(r), edge(c + FINDER_SIZE) - 1, edge(r + FINDER_SIZE) - 1)
        inner = (edge(c + 1), edge(r + 1), edge(c + 6) - 1, edge(r + 6) - 1)
        ball = (edge(c + 2), edge(r + 2), edge(c + 5) - 1, edge(r + 5) - 1)
        _draw_eye_part(draw, outer, style.eye_frame_shape, 255)
        _draw_eye_part(draw, inner, style.eye_frame_shape, 0)
        _draw_eye_part(draw, ball, style.eye_ball_shape, 255)

    if ss > 1:
        mask = mask.resize((width, width), Image.Resampling.BOX)
    return mask


def rasterize_qr(
    symbol: QRSymbol,
    style: QRStyle | None = None,
    *,
    width: int = 1000,
    margin: int = 4,
) -> Image.Image:
    """Draw a QR symbol as a square bitmap.

    Args:
        symbol: the encoded symbol.
        style: colours, gradient and shapes, plain black on white if
            omitted.

    Keyword Args:
        width: side of the output in pixels.
        margin: quiet zone around the symbol, in modules.

    Returns:
        A new ``width`` by ``width`` RGBA bitmap.

    Raises:
        InvalidInputError: bad size, margin, colour or style name.
    """
    if style is None:
        style = QRStyle()
    if int(width) != width or width < 1:
        raise InvalidInputError(f"QR width must be a positive integer, not {width}")
    if int(margin) != margin or margin < 0:
        raise InvalidInputError(f"QR margin must be a non-negative integer, not {margin}")
    width, margin = int(width), int(margin)
    if width < symbol.size + 2 * margin:
        log.warning(
            "QR width %d is less than one pixel per module (%d needed)",
            width,
            symbol.size + 2 * margin,
        )

    img = Image.new("RGBA", (width, width), parse_color(style.background))
    if style.has_gradient():
        # the gradient is a background: modules stay the solid colour
        img.alpha_composite(gradient_swatch(width, style.gradient))

    fg = parse_color(style.foreground)
    mask = module_mask(symbol, width, margin, style)
    if fg[3] != 255:
        mask = mask.point(lambda v: v * fg[3] // 255)
    ink = Image.new("RGBA", (width, width), fg[:3] + (0,))
    ink.putalpha(mask)
    img.alpha_composite(ink)
    log.debug("Rasterized version %d QR code at %dpx", symbol.version, width)
    return img
