# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

import io

from PIL import Image, ImageChops
from pytest import raises

from pixora.image.compositing import (
    FrameSpec,
    FrameStyle,
    LogoSpec,
    WatermarkPosition,
    WatermarkSpec,
    draw_frame,
    draw_logo,
    draw_watermark_text,
    overlay_layer,
)
from pixora.pixora_exceptions import EmptyTextError, InvalidInputError


def _changed_box(a, b):
    return ImageChops.difference(a.convert("RGB"), b.convert("RGB")).getbbox()


def test_watermark_empty_text() -> None:
    img = Image.new("RGBA", (100, 100))
    with raises(EmptyTextError):
        draw_watermark_text(img, "")
    with raises(EmptyTextError):
        draw_watermark_text(img, "   \n")


def test_watermark_keeps_size_and_source() -> None:
    img = Image.new("RGBA", (400, 300), (0, 0, 0, 255))
    before = img.tobytes()
    out = draw_watermark_text(img, "Pixora")
    assert out.size == img.size
    assert img.tobytes() == before
    assert _changed_box(img, out) is not None


def test_watermark_centred() -> None:
    img = Image.new("RGBA", (400, 400), (0, 0, 0, 255))
    out = draw_watermark_text(img, "Pixora", WatermarkSpec(opacity=1))
    left, top, right, bottom = _changed_box(img, out)
    assert left < 200 < right
    assert top < 200 < bottom


def test_watermark_corners() -> None:
    img = Image.new("RGBA", (400, 400), (0, 0, 0, 255))
    out = draw_watermark_text(img, "Pixora", WatermarkSpec(position="top-left"))
    left, top, right, bottom = _changed_box(img, out)
    assert left < 100 and bottom < 200
    out = draw_watermark_text(img, "Pixora", WatermarkSpec(WatermarkPosition.BOTTOM_RIGHT))
    left, top, right, bottom = _changed_box(img, out)
    assert right > 300 and top > 200


def test_watermark_diagonal() -> None:
    img = Image.new("RGBA", (400, 200), (0, 0, 0, 255))
    out = draw_watermark_text(
        img, "Diagonal text", WatermarkSpec(position="diagonal", opacity=1, scale=2)
    )
    assert out.size == (400, 200)
    left, top, right, bottom = _changed_box(img, out)
    # turned text is taller than straight text at the same size
    assert bottom - top > 40


def test_watermark_opacity_clamped() -> None:
    img = Image.new("RGBA", (400, 400), (0, 0, 0, 255))
    faint = draw_watermark_text(img, "X", WatermarkSpec(opacity=0, scale=4))
    assert _changed_box(img, faint) is not None
    brightest = max(p[0] for p in faint.getdata())
    # white at opacity 0.1
    assert 20 <= brightest <= 30
    strong = draw_watermark_text(img, "X", WatermarkSpec(opacity=5, scale=4))
    assert max(p[0] for p in strong.getdata()) == 255


def test_watermark_shadow_darkens() -> None:
    img = Image.new("RGBA", (400, 400), (255, 255, 255, 255))
    spec = WatermarkSpec(color="#ffffff", opacity=1, shadow=True, scale=3)
    out = draw_watermark_text(img, "Shadow", spec)
    assert min(p[0] for p in out.getdata()) < 255


def test_watermark_bad_position() -> None:
    with raises(InvalidInputError):
        draw_watermark_text(Image.new("RGBA", (50, 50)), "x", WatermarkSpec(position="middle"))


def _png(img):
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


def test_logo_centred_on_white_card() -> None:
    img = Image.new("RGBA", (200, 200), (0, 0, 0, 255))
    logo = Image.new("RGBA", (40, 40), (255, 0, 0, 255))
    out = draw_logo(img, logo)
    assert out.size == img.size
    assert out.getpixel((100, 100)) == (255, 0, 0, 255)
    # inside the card margin but outside the logo
    assert out.getpixel((75, 100)) == (255, 255, 255, 255)
    assert out.getpixel((0, 0)) == (0, 0, 0, 255)
    assert img.getpixel((100, 100)) == (0, 0, 0, 255)


def test_logo_from_bytes_at_position() -> None:
    img = Image.new("RGBA", (200, 200), (0, 0, 0, 255))
    logo = _png(Image.new("RGB", (80, 40), (0, 0, 255)))
    out = draw_logo(img, logo, LogoSpec(x=20, y=30))
    # 40 pixels wide, so 20 high
    assert out.getpixel((40, 40)) == (0, 0, 255, 255)
    assert out.getpixel((40, 55))[:3] == (255, 255, 255)


def test_bad_logo_is_left_out() -> None:
    img = Image.new("RGBA", (100, 100), (10, 20, 30, 255))
    out = draw_logo(img, b"definitely not a png")
    assert out.tobytes() == img.tobytes()
    out = draw_logo(img, b"")
    assert out.tobytes() == img.tobytes()


def test_logo_background_removal() -> None:
    img = Image.new("RGBA", (200, 200), (0, 0, 0, 255))
    logo = Image.new("RGBA", (40, 40), (0, 255, 0, 255))
    logo.paste((255, 0, 0, 255), (10, 10, 30, 30))
    out = draw_logo(img, logo, LogoSpec(remove_background=True))
    assert out.getpixel((100, 100)) == (255, 0, 0, 255)
    # the green surround was keyed out, showing the white card
    assert out.getpixel((83, 100)) == (255, 255, 255, 255)


def test_no_frame_is_a_copy() -> None:
    img = Image.new("RGBA", (100, 100), (1, 2, 3, 255))
    out = draw_frame(img)
    assert out is not img
    assert out.tobytes() == img.tobytes()
    assert not FrameSpec().is_visible()
    assert FrameSpec("banner").is_visible()


def test_square_frame_bars() -> None:
    img = Image.new("RGBA", (1000, 1000), (255, 255, 255, 255))
    out = draw_frame(img, FrameSpec(FrameStyle.SQUARE, color="#ff0000"))
    red = (255, 0, 0, 255)
    assert out.getpixel((500, 0)) == red
    assert out.getpixel((500, 59)) == red
    assert out.getpixel((500, 60)) == (255, 255, 255, 255)
    assert out.getpixel((500, 999)) == red
    assert out.getpixel((0, 0)) == red


def test_banner_only_at_bottom() -> None:
    img = Image.new("RGBA", (1000, 1000), (255, 255, 255, 255))
    out = draw_frame(img, FrameSpec("banner", color="#ff0000"))
    assert out.getpixel((500, 10)) == (255, 255, 255, 255)
    assert out.getpixel((500, 990)) == (255, 0, 0, 255)
    assert out.getpixel((5, 999)) == (255, 0, 0, 255)


def test_rounded_frame_corners() -> None:
    img = Image.new("RGBA", (1000, 1000), (255, 255, 255, 255))
    out = draw_frame(img, FrameSpec("rounded", color="#ff0000"))
    assert out.getpixel((0, 0)) == (255, 255, 255, 255)
    assert out.getpixel((500, 10)) == (255, 0, 0, 255)


def test_frame_scales_with_image() -> None:
    img = Image.new("RGBA", (500, 800), (255, 255, 255, 255))
    out = draw_frame(img, FrameSpec("square", color="#ff0000"))
    assert out.getpixel((250, 29)) == (255, 0, 0, 255)
    assert out.getpixel((250, 30)) == (255, 255, 255, 255)


def test_frame_caption_in_bottom_bar() -> None:
    img = Image.new("RGBA", (1000, 1000), (255, 255, 255, 255))
    spec = FrameSpec("square", color="#000000", text="Scan me", text_color="#FFFFFF")
    out = draw_frame(img, spec)
    top = out.crop((0, 0, 1000, 60)).convert("RGB")
    bottom = out.crop((0, 940, 1000, 1000)).convert("RGB")
    assert top.getextrema() == ((0, 0), (0, 0), (0, 0))
    assert bottom.getextrema()[0][1] > 0


def test_bad_frame_style() -> None:
    with raises(InvalidInputError):
        draw_frame(Image.new("RGBA", (10, 10)), FrameSpec("wavy"))


def test_overlay_not_composited_on_error() -> None:
    base = Image.new("RGBA", (10, 10), (0, 0, 0, 255))
    with raises(RuntimeError):
        with overlay_layer(base) as layer:
            layer.paste((255, 255, 255, 255), (0, 0, 10, 10))
            raise RuntimeError("drawing failed")
    assert base.getpixel((5, 5)) == (0, 0, 0, 255)
    with overlay_layer(base) as layer:
        layer.paste((255, 255, 255, 255), (0, 0, 10, 10))
    assert base.getpixel((5, 5)) == (255, 255, 255, 255)
