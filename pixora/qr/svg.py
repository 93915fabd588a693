# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Write a QR symbol as SVG.

Only flat colours are possible here: gradients, shaped modules, logos
and frames exist only on the raster path.
"""

from __future__ import annotations

import io
import logging

from pixora.image.bitmap import Color, parse_color
from pixora.pixora_exceptions import InvalidInputError, UnsupportedStyleError
from pixora.qr.render import QRStyle
from pixora.qr.symbol import QRSymbol


log = logging.getLogger("qr")


def _svg_color(color: Color) -> str | None:
    r, g, b, a = parse_color(color)
    if a == 0:
        # segno leaves out the element entirely
        return None
    if a == 255:
        return f"#{r:02x}{g:02x}{b:02x}"
    return f"#{r:02x}{g:02x}{b:02x}{a:02x}"


def vectorize_qr(
    symbol: QRSymbol,
    style: QRStyle | None = None,
    *,
    width: int = 1000,
    margin: int = 4,
) -> str:
    """Render a QR symbol as an SVG document.

    Args:
        symbol: the encoded symbol.
        style: only the flat foreground and background colours are
            used; anything fancier is refused.

    Keyword Args:
        width: width and height of the drawing in SVG user units.
        margin: quiet zone around the symbol, in modules.

    Returns:
        The SVG document as a string.

    Raises:
        UnsupportedStyleError: a gradient or shapes were asked for.
        InvalidInputError: bad width or margin.
    """
    if style is None:
        style = QRStyle()
    if style.has_gradient():
        raise UnsupportedStyleError("Gradients are only available for PNG output")
    if style.has_shapes():
        raise UnsupportedStyleError("Module and eye shapes are only available for PNG output")
    if width <= 0 or margin < 0 or int(margin) != margin:
        raise InvalidInputError(f"Bad SVG width {width} or margin {margin}")
    scale = width / (symbol.size + 2 * margin)
    buf = io.BytesIO()
    symbol.code.save(
        buf,
        kind="svg",
        scale=scale,
        border=int(margin),
        dark=_svg_color(style.foreground),
        light=_svg_color(style.background),
    )
    log.debug("Wrote version %d QR code as SVG", symbol.version)
    return buf.getvalue().decode("utf-8")
