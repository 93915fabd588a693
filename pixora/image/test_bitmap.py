# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

import io
import struct
import zlib

import numpy as np
from PIL import Image
from pytest import raises

from pixora.image.bitmap import (
    EncodeSpec,
    ImageFormat,
    codec_quality,
    decode_image,
    encode_image,
    parse_color,
)
from pixora.image.geometry import resize
from pixora.pixora_exceptions import (
    DecodeError,
    InvalidInputError,
    UnsupportedFormatError,
)


def _bytes(img, fmt, **kwargs):
    buf = io.BytesIO()
    img.save(buf, format=fmt, **kwargs)
    return buf.getvalue()


def _sample_rgba():
    img = Image.new("RGBA", (16, 8), (10, 20, 30, 255))
    img.putpixel((0, 0), (255, 0, 0, 255))
    img.putpixel((15, 7), (0, 0, 255, 0))
    img.putpixel((3, 4), (1, 2, 3, 128))
    return img


def test_png_round_trip_is_exact() -> None:
    img = _sample_rgba()
    a = decode_image(_bytes(img, "PNG"), "image/png")
    assert a.mode == "RGBA"
    b = decode_image(encode_image(a, EncodeSpec("png", 100)), "image/png")
    assert a.size == b.size
    assert a.tobytes() == b.tobytes()


def test_png_round_trip_from_lossy_sources() -> None:
    src = Image.new("RGB", (20, 10), (200, 120, 40))
    for fmt, mime in (("JPEG", "image/jpeg"), ("WEBP", "image/webp"), ("GIF", "image/gif")):
        a = decode_image(_bytes(src, fmt), mime)
        b = decode_image(encode_image(a, EncodeSpec(ImageFormat.PNG, 100)), "image/png")
        assert a.tobytes() == b.tobytes()


def test_png_encoding_is_deterministic() -> None:
    img = _sample_rgba()
    assert encode_image(img) == encode_image(img.copy())


def test_decode_unsupported_mime_type() -> None:
    data = _bytes(_sample_rgba(), "PNG")
    with raises(UnsupportedFormatError):
        decode_image(data, "image/bmp")
    with raises(UnsupportedFormatError):
        decode_image(data, "application/pdf")


def test_decode_mime_aliases() -> None:
    data = _bytes(Image.new("RGB", (4, 4)), "JPEG")
    assert decode_image(data, "image/jpg").size == (4, 4)
    assert decode_image(data, "IMAGE/JPEG").size == (4, 4)


def test_decode_empty_is_invalid() -> None:
    with raises(InvalidInputError):
        decode_image(b"", "image/png")


def test_decode_garbage() -> None:
    with raises(DecodeError):
        decode_image(b"this is not an image at all", "image/png")


def test_decode_truncated_png() -> None:
    data = _bytes(Image.new("RGB", (64, 64), (1, 2, 3)), "PNG")
    with raises(DecodeError):
        decode_image(data[: len(data) // 2], "image/png")


def _png_header_only(width, height):
    # a PNG with a greyscale IHDR and no pixel data
    def chunk(kind, body):
        crc = zlib.crc32(kind + body) & 0xFFFFFFFF
        return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 0, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


def test_decode_huge_dimensions_refused() -> None:
    with raises(DecodeError):
        decode_image(_png_header_only(30000, 30000), "image/png")


def test_decode_16bit_greyscale_png() -> None:
    img = Image.fromarray(np.full((4, 4), 40000, dtype=np.uint16))
    data = _bytes(img, "PNG")
    out = decode_image(data, "image/png")
    assert out.mode == "RGBA"
    assert out.getpixel((0, 0)) == (156, 156, 156, 255)
    black = _bytes(Image.fromarray(np.zeros((2, 2), np.uint16)), "PNG")
    assert decode_image(black, "image/png").getpixel((1, 1)) == (0, 0, 0, 255)


def test_jpeg_flattens_onto_white() -> None:
    img = Image.new("RGBA", (8, 8), (0, 0, 0, 0))
    out = decode_image(encode_image(img, EncodeSpec("jpeg", 100)), "image/jpeg")
    r, g, b, a = out.getpixel((4, 4))
    assert a == 255
    assert min(r, g, b) > 245


def test_background_flattens_png_too() -> None:
    img = Image.new("RGBA", (8, 8), (0, 0, 0, 0))
    out = decode_image(encode_image(img, EncodeSpec("png", background="#00FF00")), "image/png")
    assert out.getpixel((0, 0)) == (0, 255, 0, 255)


def test_encode_unknown_format() -> None:
    with raises(UnsupportedFormatError):
        encode_image(_sample_rgba(), EncodeSpec("bmp"))


def test_jpeg_quality_affects_size() -> None:
    img = Image.effect_noise((64, 64), 60).convert("RGB")
    small = encode_image(img, EncodeSpec("jpeg", 20))
    big = encode_image(img, EncodeSpec("jpeg", 95))
    assert len(small) < len(big)


def test_codec_quality_range() -> None:
    assert codec_quality(None) == 0.9
    assert codec_quality(0) == 0.1
    assert codec_quality(250) == 1.0
    assert codec_quality(50) == 0.5


def test_format_from_string() -> None:
    assert ImageFormat.from_string("JPG") is ImageFormat.JPEG
    assert ImageFormat.from_string("image/webp") is ImageFormat.WEBP
    assert ImageFormat.from_string(".png") is ImageFormat.PNG
    assert not ImageFormat.JPEG.has_alpha
    assert ImageFormat.PNG.mime_type == "image/png"
    with raises(UnsupportedFormatError):
        ImageFormat.from_string("tiff")


def test_parse_color() -> None:
    assert parse_color("#ff0000") == (255, 0, 0, 255)
    assert parse_color("rgba(0, 0, 0, 0.5)") == (0, 0, 0, 128)
    assert parse_color((1, 2, 3)) == (1, 2, 3, 255)
    assert parse_color("white") == (255, 255, 255, 255)
    with raises(InvalidInputError):
        parse_color("not-a-colour")
    with raises(InvalidInputError):
        parse_color((1, 2))


def test_jpeg_exif_orientation_applied() -> None:
    img = Image.new("RGB", (40, 20), (255, 255, 255))
    exif = Image.Exif()
    # 6 means the camera was turned: display rotated 90 clockwise
    exif[0x0112] = 6
    data = _bytes(img, "JPEG", exif=exif.tobytes())
    out = decode_image(data, "image/jpeg")
    assert out.size == (20, 40)


def test_jpeg_without_exif_keeps_size() -> None:
    data = _bytes(Image.new("RGB", (40, 20)), "JPEG")
    assert decode_image(data, "image/jpeg").size == (40, 20)


def test_resize_jpeg_end_to_end() -> None:
    data = _bytes(Image.new("RGB", (100, 50), (90, 160, 30)), "JPEG")
    img = decode_image(data, "image/jpeg")
    assert img.size == (100, 50)
    bigger = resize(img, width=200, maintain_aspect_ratio=True)
    assert bigger.size == (200, 100)
    again = decode_image(encode_image(bigger, EncodeSpec("png", 100)), "image/png")
    assert again.size == (200, 100)
