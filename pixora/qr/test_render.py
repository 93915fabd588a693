# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

from pytest import raises

from pixora.pixora_exceptions import InvalidInputError
from pixora.qr.render import (
    BodyShape,
    EyeShape,
    Gradient,
    GradientType,
    QRStyle,
    gradient_swatch,
    rasterize_qr,
)
from pixora.qr.symbol import generate_qr_symbol

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def _symbol():
    s = generate_qr_symbol("Pixora", "M")
    assert s.size == 21
    return s


def _centre(row, col, margin=4, module=10):
    return ((col + margin) * module + module // 2, (row + margin) * module + module // 2)


def test_output_size() -> None:
    img = rasterize_qr(_symbol(), width=1000)
    assert img.size == (1000, 1000)
    assert img.mode == "RGBA"
    assert img.getpixel((0, 0)) == WHITE


def test_square_modules_match_matrix() -> None:
    s = _symbol()
    img = rasterize_qr(s, width=290, margin=4)
    for row in range(s.size):
        for col in range(s.size):
            want = BLACK if s.matrix[row][col] else WHITE
            assert img.getpixel(_centre(row, col)) == want


def test_no_margin() -> None:
    s = _symbol()
    img = rasterize_qr(s, width=210, margin=0)
    assert img.getpixel((0, 0)) == BLACK
    assert img.getpixel((15, 15)) == WHITE


def test_colours() -> None:
    style = QRStyle(foreground="#ff0000", background="#0000ff")
    img = rasterize_qr(_symbol(), style, width=290)
    assert img.getpixel((5, 5)) == (0, 0, 255, 255)
    assert img.getpixel(_centre(0, 0)) == (255, 0, 0, 255)


def test_translucent_foreground() -> None:
    style = QRStyle(foreground="rgba(0, 0, 0, 0.5)")
    img = rasterize_qr(_symbol(), style, width=290)
    r, g, b, a = img.getpixel(_centre(0, 0))
    assert 120 <= r <= 135 and a == 255


def test_linear_gradient_background() -> None:
    style = QRStyle(gradient=Gradient("linear", ["#ff0000", "#0000ff"]))
    img = rasterize_qr(_symbol(), style, width=290)
    r, g, b, _ = img.getpixel((2, 2))
    assert r > 240 and b < 15
    r, g, b, _ = img.getpixel((287, 287))
    assert r < 15 and b > 240
    # modules keep the solid foreground
    assert img.getpixel(_centre(3, 3)) == BLACK


def test_radial_gradient_corners() -> None:
    style = QRStyle(gradient=Gradient(GradientType.RADIAL, ["#ff0000", "#0000ff"]))
    img = rasterize_qr(_symbol(), style, width=290)
    assert img.getpixel((0, 0)) == (0, 0, 255, 255)
    assert img.getpixel((289, 0)) == (0, 0, 255, 255)


def test_gradient_without_colours_is_ignored() -> None:
    style = QRStyle(gradient=Gradient("linear", []))
    assert not style.has_gradient()
    assert not QRStyle(gradient=Gradient("none", ["#000", "#fff"])).has_gradient()
    img = rasterize_qr(_symbol(), style, width=290)
    assert img.getpixel((2, 2)) == WHITE


def test_gradient_swatch_stops() -> None:
    sw = gradient_swatch(100, Gradient("linear", ["#000000", "#ffffff"]))
    assert sw.size == (100, 100)
    assert sw.getpixel((0, 0))[0] < 5
    assert sw.getpixel((99, 99))[0] > 250
    mid = sw.getpixel((50, 49))[0]
    assert 120 < mid < 135
    single = gradient_swatch(10, Gradient("radial", ["#123456"]))
    assert single.getpixel((5, 5)) == (0x12, 0x34, 0x56, 255)


def test_shapes() -> None:
    s = _symbol()
    assert not QRStyle().has_shapes()
    square = rasterize_qr(s, width=290)
    for body in BodyShape:
        style = QRStyle(body_shape=body)
        img = rasterize_qr(s, style, width=290)
        assert img.size == (290, 290)
        # eyes unaffected by the body shape
        assert img.getpixel(_centre(3, 3)) == BLACK
        assert img.getpixel(_centre(1, 1)) == WHITE
        if body is BodyShape.DOTS:
            assert img.tobytes() != square.tobytes()


def test_circle_eyes() -> None:
    s = _symbol()
    square = rasterize_qr(s, width=290)
    circle = rasterize_qr(
        s, QRStyle(eye_frame_shape="circle", eye_ball_shape="circle"), width=290
    )
    # outer corner of the top-left finder
    assert square.getpixel((40, 40)) == BLACK
    assert circle.getpixel((40, 40)) == WHITE
    assert circle.getpixel(_centre(3, 3)) == BLACK
    for eye in EyeShape:
        img = rasterize_qr(s, QRStyle(eye_frame_shape=eye, eye_ball_shape=eye), width=290)
        assert img.getpixel(_centre(3, 3)) == BLACK


def test_bad_arguments() -> None:
    s = _symbol()
    with raises(InvalidInputError):
        rasterize_qr(s, width=0)
    with raises(InvalidInputError):
        rasterize_qr(s, width=100, margin=-1)
    with raises(InvalidInputError):
        rasterize_qr(s, QRStyle(body_shape="hexagons"), width=100)
    with raises(InvalidInputError):
        rasterize_qr(s, QRStyle(foreground="nope"), width=100)
