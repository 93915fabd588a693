# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Colour filters with the same meaning as the CSS filter functions."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageFilter

from pixora.image.bitmap import as_rgba


# Matrices from the Filter Effects spec, acting on linear RGB rows
_SEPIA = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ]
)
_GRAYSCALE = np.array(
    [
        [0.2126, 0.7152, 0.0722],
        [0.2126, 0.7152, 0.0722],
        [0.2126, 0.7152, 0.0722],
    ]
)


@dataclass
class FilterSettings:
    """Filter knobs, all optional.

    Brightness, contrast and saturation are percentages where 100 (or
    None) is no change.  Blur is a radius in pixels, 0 for none.  Sepia
    and grayscale are on/off, or an amount between 0 and 1.
    """

    brightness: float | None = None
    contrast: float | None = None
    saturation: float | None = None
    blur: float | None = None
    sepia: bool | float = False
    grayscale: bool | float = False

    def is_identity(self) -> bool:
        return (
            self.brightness in (None, 100)
            and self.contrast in (None, 100)
            and self.saturation in (None, 100)
            and not self.blur
            and not self.sepia
            and not self.grayscale
        )


def _saturate_matrix(s: float) -> np.ndarray:
    return np.array(
        [
            [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
        ]
    )


def _amount_matrix(m: np.ndarray, amount: float) -> np.ndarray:
    # interpolate between identity (amount 0) and the full matrix
    amount = max(0.0, min(1.0, float(amount)))
    return (1 - amount) * np.eye(3) + amount * m


def _apply_matrix(rgb: np.ndarray, m: np.ndarray) -> np.ndarray:
    return np.clip(rgb @ m.T, 0.0, 1.0)


def apply_filters(src: Image.Image, settings: FilterSettings | None = None) -> Image.Image:
    """Apply colour filters in a fixed order.

    The order is brightness, contrast, saturation, blur, sepia then
    grayscale, which is the order a browser applies a combined CSS
    ``filter`` list.  Alpha is left alone except by blur.

    Args:
        src: the source bitmap, not modified.
        settings: the knobs; None or all-neutral gives a copy.

    Returns:
        A new RGBA bitmap.
    """
    img = as_rgba(src)
    if settings is None or settings.is_identity():
        return img

    arr = np.asarray(img, dtype=np.float64) / 255.0
    rgb = arr[..., :3]
    alpha = arr[..., 3:]

    if settings.brightness not in (None, 100):
        rgb = np.clip(rgb * (max(0.0, settings.brightness) / 100), 0.0, 1.0)
    if settings.contrast not in (None, 100):
        c = max(0.0, settings.contrast) / 100
        rgb = np.clip((rgb - 0.5) * c + 0.5, 0.0, 1.0)
    if settings.saturation not in (None, 100):
        rgb = _apply_matrix(rgb, _saturate_matrix(max(0.0, settings.saturation) / 100))

    if settings.blur and settings.blur > 0:
        arr = np.concatenate([rgb, alpha], axis=-1)
        tmp = Image.fromarray(np.rint(arr * 255).astype(np.uint8))
        # premultiplied, so transparent pixels do not bleed their colour
        blur = ImageFilter.GaussianBlur(radius=settings.blur)
        tmp = tmp.convert("RGBa").filter(blur)
        arr = np.asarray(tmp.convert("RGBA"), dtype=np.float64) / 255.0
        rgb = arr[..., :3]
        alpha = arr[..., 3:]

    if settings.sepia:
        rgb = _apply_matrix(rgb, _amount_matrix(_SEPIA, float(settings.sepia)))
    if settings.grayscale:
        rgb = _apply_matrix(rgb, _amount_matrix(_GRAYSCALE, float(settings.grayscale)))

    out = np.concatenate([rgb, alpha], axis=-1)
    return Image.fromarray(np.rint(out * 255).astype(np.uint8))
