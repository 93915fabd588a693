# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Background removal by colour keying.

This is deliberately naive: a single reference colour is taken from the
border of the image and everything close enough to it is made
transparent.  It will not cope with gradients or with more than one
background colour; it is not segmentation.
"""

from __future__ import annotations

import logging

import numpy as np
from PIL import Image

from pixora.image.bitmap import as_rgba
from pixora.pixora_exceptions import InvalidInputError


log = logging.getLogger("image")

# colour distance per unit of sensitivity
THRESHOLD_PER_SENSITIVITY = 2.5


def sample_points(width: int, height: int) -> list[tuple[int, int]]:
    """The four corners then the four edge midpoints, as (x, y)."""
    w, h = width - 1, height - 1
    return [
        (0, 0),
        (w, 0),
        (0, h),
        (w, h),
        (w // 2, 0),
        (w // 2, h),
        (0, h // 2),
        (w, h // 2),
    ]


def reference_color(img: Image.Image, sample: str = "median") -> tuple[int, int, int]:
    """Guess the background colour from the border of the image.

    Args:
        img: an RGBA bitmap.
        sample: ``"median"`` for the per-channel median of the eight
            :func:`sample_points`, or ``"corner"`` for the top-left
            pixel alone.
    """
    arr = np.asarray(as_rgba(img))
    pts = sample_points(img.width, img.height)
    if sample == "corner":
        pts = pts[:1]
    elif sample != "median":
        raise InvalidInputError(f'Unknown background sampling "{sample}"')
    colors = np.array([arr[y, x, :3] for x, y in pts], dtype=np.float64)
    ref = np.median(colors, axis=0)
    return (int(round(ref[0])), int(round(ref[1])), int(round(ref[2])))


def _box_mean_3x3(a: np.ndarray) -> np.ndarray:
    p = np.pad(a, ((1, 1), (1, 1)), mode="edge")
    h, w = a.shape
    total = np.zeros_like(a)
    for dy in range(3):
        for dx in range(3):
            total += p[dy : dy + h, dx : dx + w]
    return total / 9.0


def remove_background(
    src: Image.Image,
    sensitivity: float = 30,
    *,
    feather: float = 20.0,
    smoothing: float = 0.5,
    sample: str = "median",
) -> Image.Image:
    """Make pixels close to the background colour transparent.

    Each pixel's Euclidean RGB distance to the reference colour is
    compared to ``threshold = 2.5 * sensitivity``.  Pixels at or within
    the threshold become fully transparent, so sensitivity 0 still keys
    out exact matches; pixels in a band of width ``feather`` beyond the
    threshold get a linearly increasing alpha; all others keep their
    alpha.  Finally alpha of partially transparent pixels is blended
    with its 3x3 neighbourhood mean to soften jagged edges.

    Args:
        src: the source bitmap, not modified.
        sensitivity: 0 to 100, how much colour difference still counts
            as background.  Raising it never makes fewer pixels transparent.

    Keyword Args:
        feather: width in colour distance of the soft edge, 0 for a
            hard edge.
        smoothing: 0 to 1, how much of the neighbourhood mean to blend
            into partially transparent pixels.
        sample: how to choose the reference colour, see
            :func:`reference_color`.

    Returns:
        A new RGBA bitmap.  Encoding it to a format without alpha needs
        a background colour to flatten onto.
    """
    sensitivity = max(0.0, min(100.0, float(sensitivity)))
    smoothing = max(0.0, min(1.0, float(smoothing)))
    feather = max(0.0, float(feather))
    img = as_rgba(src)
    ref = np.array(reference_color(img, sample), dtype=np.float64)
    threshold = THRESHOLD_PER_SENSITIVITY * sensitivity
    log.debug("Keying out colour %s within distance %g", tuple(ref), threshold)

    arr = np.asarray(img, dtype=np.float64)
    dist = np.sqrt(np.sum((arr[..., :3] - ref) ** 2, axis=-1))
    keyed = np.full(dist.shape, 255.0)
    if feather > 0:
        band = (dist > threshold) & (dist < threshold + feather)
        keyed[band] = (dist[band] - threshold) / feather * 255.0
    keyed[dist <= threshold] = 0.0
    alpha = np.minimum(arr[..., 3], keyed)

    if smoothing > 0:
        partial = (alpha > 0) & (alpha < 255)
        mean = _box_mean_3x3(alpha)
        smoothed = alpha * (1 - smoothing) + mean * smoothing
        # partially transparent pixels stay visible, if only just
        alpha = np.where(partial, np.maximum(smoothed, 1.0), alpha)

    out = np.asarray(img).copy()
    out[..., 3] = np.clip(np.rint(alpha), 0, 255).astype(np.uint8)
    removed = int(np.count_nonzero(out[..., 3] == 0))
    log.info("Background removal made %d of %d pixels transparent", removed, dist.size)
    return Image.fromarray(out)
