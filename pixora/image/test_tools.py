# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

import io

from PIL import Image
from pytest import raises

from pixora.image.bitmap import decode_image
from pixora.image.filters import FilterSettings
from pixora.image.tools import (
    CompressionLevel,
    ProcessingOptions,
    compress_image,
    compression_quality,
    convert_format,
    transform_image,
)
from pixora.pixora_exceptions import InvalidInputError, UnsupportedFormatError


def _png(img):
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


def _noise(w=64, h=64):
    return Image.merge(
        "RGB",
        [Image.effect_noise((w, h), 64 + 10 * k).convert("L") for k in range(3)],
    )


def test_compression_levels() -> None:
    assert compression_quality(None) == 80
    assert compression_quality(None, 33) == 33
    assert compression_quality("low", 50) == 85
    assert compression_quality(CompressionLevel.LOW, 95) == 95
    assert compression_quality("medium", 50) == 60
    assert compression_quality("medium", 95) == 85
    assert compression_quality("medium") == 80
    assert compression_quality("high", 80) == 70
    assert compression_quality("high", 30) == 40
    assert compression_quality("MAXIMUM", 80) == 50
    assert compression_quality("maximum", 20) == 20
    with raises(InvalidInputError):
        compression_quality("extreme", 80)


def test_compress_keeps_dimensions() -> None:
    data = _png(_noise(64, 32))
    out = compress_image(data, "image/png")
    assert out[:2] == b"\xff\xd8"
    assert decode_image(out, "image/jpeg").size == (64, 32)


def test_more_compression_is_smaller() -> None:
    data = _png(_noise())
    low = compress_image(data, "image/png", ProcessingOptions(compression_level="low"))
    most = compress_image(
        data, "image/png", ProcessingOptions(compression_level="maximum")
    )
    assert len(most) < len(low)


def test_compress_to_webp() -> None:
    data = _png(_noise(16, 16))
    out = compress_image(data, "image/png", output_format="webp")
    assert out[:4] == b"RIFF"


def test_convert_png_to_jpeg_flattens_onto_background() -> None:
    data = _png(Image.new("RGBA", (20, 20), (0, 0, 0, 0)))
    out = convert_format(data, "image/png", "jpeg", ProcessingOptions(background="#ff0000"))
    r, g, b, a = decode_image(out, "image/jpeg").getpixel((10, 10))
    assert r > 240 and g < 15 and b < 15 and a == 255


def test_convert_to_png_keeps_alpha() -> None:
    data = _png(Image.new("RGBA", (20, 20), (0, 0, 0, 0)))
    out = convert_format(data, "image/png", "png", ProcessingOptions(background="#ff0000"))
    assert decode_image(out, "image/png").getpixel((3, 3)) == (0, 0, 0, 0)


def test_convert_with_transforms() -> None:
    data = _png(Image.new("RGB", (100, 50), (200, 200, 200)))
    opts = ProcessingOptions(width=50, rotation=90, filters=FilterSettings(brightness=50))
    out = decode_image(convert_format(data, "image/png", "png", opts), "image/png")
    assert out.size == (25, 50)
    assert out.getpixel((10, 10)) == (100, 100, 100, 255)


def test_convert_unknown_output_format() -> None:
    data = _png(Image.new("RGB", (4, 4)))
    with raises(UnsupportedFormatError):
        convert_format(data, "image/png", "bmp")


def test_transform_order_flip_before_rotate() -> None:
    img = Image.new("RGBA", (2, 1))
    img.putpixel((0, 0), (255, 0, 0, 255))
    img.putpixel((1, 0), (0, 0, 255, 255))
    out = transform_image(img, ProcessingOptions(flip_horizontal=True, rotation=90))
    # flipped puts blue on the left, which turning clockwise puts on top
    assert out.getpixel((0, 0)) == (0, 0, 255, 255)


def test_transform_nothing_asked() -> None:
    img = Image.new("RGBA", (7, 3), (1, 2, 3, 4))
    out = transform_image(img, ProcessingOptions())
    assert out.tobytes() == img.tobytes()
