# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""The whole QR code pipeline: text to styled PNG, or to SVG.

Text is encoded first, so content that is too long is refused before
any drawing.  Then the symbol is rasterized and styled, and any logo
and frame are composited on top.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Iterable

from PIL import Image

from pixora.config import get_config
from pixora.image.bitmap import EncodeSpec, ImageFormat, encode_image
from pixora.image.compositing import FrameSpec, LogoSpec, draw_frame, draw_logo
from pixora.pixora_exceptions import PixoraException, UnsupportedStyleError
from pixora.qr.render import BodyShape, EyeShape, QRStyle, rasterize_qr
from pixora.qr.svg import vectorize_qr
from pixora.qr.symbol import generate_qr_symbol


log = logging.getLogger("qr")


@dataclass
class QROptions:
    """Everything about how a QR code looks.

    Attributes:
        width: side of the image in pixels.
        margin: quiet zone in modules.
        error: error correction level, L, M, Q or H.
        style: colours, gradient and shapes.
        logo: a bitmap or encoded image to put in the middle, or None.
        logo_spec: how to place the logo.
        frame: bars and caption around the code, or None.
    """

    width: int = 1000
    margin: int = 4
    error: str = "M"
    style: QRStyle = field(default_factory=QRStyle)
    logo: Image.Image | bytes | None = None
    logo_spec: LogoSpec = field(default_factory=LogoSpec)
    frame: FrameSpec | None = None

    @classmethod
    def from_config(cls, cfg: dict[str, Any] | None = None, **kwargs) -> QROptions:
        """Options with defaults from the ``[qr]`` configuration section.

        Keyword arguments override the configured values.
        """
        if cfg is None:
            cfg = get_config()
        qr = cfg["qr"]
        opts = {
            "width": qr["width"],
            "margin": qr["margin"],
            "error": qr["error"],
            "style": QRStyle(foreground=qr["foreground"], background=qr["background"]),
        }
        opts.update(kwargs)
        return cls(**opts)


@dataclass
class GeneratedQR:
    filename: str
    data: bytes


def raster_only_features(options: QROptions) -> list[str]:
    """Name the requested features that SVG output cannot do.

    An empty list means the options can be written as SVG.
    """
    feats = []
    style = options.style.normalized()
    if style.has_gradient():
        feats.append("gradient")
    if style.body_shape is not BodyShape.SQUARE:
        feats.append("body shape")
    if (
        style.eye_frame_shape is not EyeShape.SQUARE
        or style.eye_ball_shape is not EyeShape.SQUARE
    ):
        feats.append("eye shape")
    if options.logo is not None:
        feats.append("logo")
    if options.frame is not None and options.frame.is_visible():
        feats.append("frame")
    return feats


def generate_qr_code(text: str, options: QROptions | None = None) -> Image.Image:
    """Make a styled QR code bitmap.

    A logo that cannot be drawn is left out with a warning; the code
    is still produced.

    Raises:
        EmptyContentError: no text.
        ContentTooLargeError: too much text for the error level.
        InvalidInputError: bad sizes, colours or style names.
    """
    if options is None:
        options = QROptions()
    symbol = generate_qr_symbol(text, options.error)
    img = rasterize_qr(symbol, options.style, width=options.width, margin=options.margin)
    if options.logo is not None:
        img = draw_logo(img, options.logo, options.logo_spec)
    if options.frame is not None:
        img = draw_frame(img, options.frame)
    log.info(
        "Generated %dpx QR code, version %d-%s, %d characters",
        options.width,
        symbol.version,
        symbol.error,
        len(text),
    )
    return img


def generate_qr_png(text: str, options: QROptions | None = None) -> bytes:
    """Make a styled QR code as PNG bytes."""
    return encode_image(generate_qr_code(text, options), EncodeSpec(ImageFormat.PNG))


def generate_qr_svg(text: str, options: QROptions | None = None) -> str:
    """Make a flat-coloured QR code as an SVG document.

    Raises:
        UnsupportedStyleError: the options ask for raster-only features,
            see :func:`raster_only_features`.
        EmptyContentError: no text.
        ContentTooLargeError: too much text for the error level.
    """
    if options is None:
        options = QROptions()
    feats = raster_only_features(options)
    if feats:
        raise UnsupportedStyleError(
            "Only available for PNG output, not SVG: " + ", ".join(feats)
        )
    symbol = generate_qr_symbol(text, options.error)
    return vectorize_qr(symbol, options.style, width=options.width, margin=options.margin)


def generate_bulk_qr_codes(
    items: Iterable[str | tuple[str, str | None]],
    options: QROptions | None = None,
) -> list[GeneratedQR]:
    """Make a PNG QR code for each of many contents.

    Args:
        items: contents, or ``(content, filename)`` pairs where the
            filename may be None.
        options: shared by all the codes.

    Returns:
        One entry per code made.  Empty contents are skipped, as are
        any that fail; both are logged.  Unnamed codes are called
        ``qr-code-<n>.png`` with n counting items from 1.
    """
    results = []
    for n, item in enumerate(items, start=1):
        if isinstance(item, str):
            content, filename = item, None
        else:
            content, filename = item
        if not content or not content.strip():
            log.warning("Skipping empty content for item %d", n)
            continue
        try:
            data = generate_qr_png(content, options)
        except PixoraException as err:
            log.error("Failed to generate QR code for item %d: %s", n, err)
            continue
        results.append(GeneratedQR(filename or f"qr-code-{n}.png", data))
    return results
