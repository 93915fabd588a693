#!/usr/bin/env python3
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Pixora image and QR code tools.

Each subcommand reads an image file, does one thing to it and writes the
result.  The output format follows the extension of the output file.
Defaults come from the packaged configuration, overridden by a TOML
file given with --config or named in the PIXORA_CONFIG environment
variable.
"""

__copyright__ = "Copyright (C) 2025 The Pixora Tools Developers"
__credits__ = "The Pixora Tools Developers"
__license__ = "AGPL-3.0-or-later"

import argparse
import logging
import mimetypes
from pathlib import Path
import sys

from pixora import __version__
from pixora.config import load_config, write_config
from pixora.pixora_exceptions import PixoraBenignException
from pixora.image import (
    CropArea,
    EncodeSpec,
    FilterSettings,
    FrameSpec,
    ImageFormat,
    LogoSpec,
    WatermarkSpec,
    apply_filters,
    crop,
    crop_area_for_aspect,
    decode_image,
    draw_watermark_text,
    encode_image,
    flip,
    remove_background,
    resize,
    rotate,
    upscale,
)
from pixora.image import ProcessingOptions, compress_image, convert_format
from pixora.qr import Gradient, QROptions, format_content
from pixora.qr import generate_qr_png, generate_qr_svg


log = logging.getLogger("pixora")


def guess_mime_type(fname):
    """Mime type from the file extension, PNG if we cannot tell."""
    mime, _ = mimetypes.guess_type(str(fname))
    return mime or "image/png"


def read_image(fname):
    fname = Path(fname)
    return decode_image(fname.read_bytes(), guess_mime_type(fname))


def write_image(img, fname, cfg, quality=None):
    fname = Path(fname)
    fmt = ImageFormat.from_string(fname.suffix)
    background = None if fmt.has_alpha else cfg["image"]["background"]
    if quality is None:
        quality = cfg["image"]["quality"]
    fname.write_bytes(encode_image(img, EncodeSpec(fmt, quality, background)))
    print(f'Wrote "{fname}" ({img.width}x{img.height})')


def parse_fields(fields):
    """Turn ``key=value`` strings into a dict, with true/false as bools."""
    out = {}
    for f in fields or []:
        key, sep, value = f.partition("=")
        if not sep:
            raise ValueError(f'Expected key=value, not "{f}"')
        if value.casefold() in ("true", "false"):
            value = value.casefold() == "true"
        out[key.strip()] = value
    return out


def get_parser():
    parser = argparse.ArgumentParser(
        description=__doc__.split("\n")[0],
        epilog="\n".join(__doc__.split("\n")[1:]),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s " + __version__
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="TOML file of settings to use over the defaults.",
    )
    parser.add_argument(
        "--loglevel",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Defaults to the [logging] level in the configuration.",
    )
    sub = parser.add_subparsers(dest="command", description="Tools.")

    def io_args(sp):
        sp.add_argument("input", help="Image to read: JPEG, PNG, WebP or GIF.")
        sp.add_argument("output", help="Where to write; the extension picks the format.")

    sp = sub.add_parser("resize", help="Resize an image")
    io_args(sp)
    sp.add_argument("--width", type=int)
    sp.add_argument("--height", type=int)
    sp.add_argument(
        "--stretch",
        action="store_true",
        help="Use exactly the given width and height, ignoring aspect ratio.",
    )
    sp.add_argument("--resample", help="nearest, bilinear, bicubic or lanczos.")

    sp = sub.add_parser("upscale", help="Enlarge an image by a factor")
    io_args(sp)
    sp.add_argument("factor", help='Such as "2" or "1.5x".')
    sp.add_argument("--resample", default="lanczos")

    sp = sub.add_parser(
        "crop",
        help="Crop an image",
        description="Crop to an area given in percent of the image size.",
    )
    io_args(sp)
    sp.add_argument("--x", type=float, default=10.0)
    sp.add_argument("--y", type=float, default=10.0)
    sp.add_argument("--width", type=float, default=80.0)
    sp.add_argument("--height", type=float, default=80.0)
    sp.add_argument(
        "--aspect",
        metavar="W:H",
        help='Largest centred area with this aspect ratio, such as "16:9".',
    )

    sp = sub.add_parser("rotate", help="Rotate an image clockwise")
    io_args(sp)
    sp.add_argument("angle", type=float, help="Degrees clockwise.")
    sp.add_argument("--background", help="Fill for exposed corners, else transparent.")

    sp = sub.add_parser("flip", help="Mirror an image")
    io_args(sp)
    sp.add_argument("--horizontal", action="store_true")
    sp.add_argument("--vertical", action="store_true")

    sp = sub.add_parser("filter", help="Adjust colours or blur")
    io_args(sp)
    sp.add_argument("--brightness", type=float, help="Percent, 100 is unchanged.")
    sp.add_argument("--contrast", type=float, help="Percent, 100 is unchanged.")
    sp.add_argument("--saturation", type=float, help="Percent, 100 is unchanged.")
    sp.add_argument("--blur", type=float, help="Radius in pixels.")
    sp.add_argument("--sepia", action="store_true")
    sp.add_argument("--grayscale", action="store_true")

    sp = sub.add_parser(
        "rmbg",
        help="Remove a plain background",
        description="""
            Make pixels close to the border colour transparent.
            Only works on backgrounds of one colour.
        """,
    )
    io_args(sp)
    sp.add_argument("--sensitivity", type=float, help="0 to 100.")
    sp.add_argument("--feather", type=float)
    sp.add_argument("--smoothing", type=float, help="0 to 1.")
    sp.add_argument(
        "--corner-sample",
        action="store_true",
        help="Take the background colour from the top-left pixel only.",
    )

    sp = sub.add_parser("watermark", help="Write text over an image")
    io_args(sp)
    sp.add_argument("text")
    sp.add_argument(
        "--position",
        default="center",
        choices=["top-left", "top-right", "bottom-left", "bottom-right", "center", "diagonal"],
    )
    sp.add_argument("--color", default="#ffffff")
    sp.add_argument("--opacity", type=float, default=0.5)
    sp.add_argument("--shadow", action="store_true")
    sp.add_argument("--scale", type=float, default=1.0, help="Multiplies the font size.")

    sp = sub.add_parser("convert", help="Convert to the format of the output file")
    io_args(sp)
    sp.add_argument("--quality", type=float)
    sp.add_argument("--background", help="Colour behind transparency for JPEG.")

    sp = sub.add_parser("compress", help="Re-encode at a lower quality")
    io_args(sp)
    sp.add_argument("--level", choices=["low", "medium", "high", "maximum"], default="medium")
    sp.add_argument("--quality", type=float, help="Starting quality, default 80.")

    sp = sub.add_parser(
        "qr",
        help="Generate a QR code",
        description="""
            Generate a QR code as PNG, or as SVG if the output ends in
            .svg.  SVG output supports flat colours only.  For wifi,
            vcard and event content, give the fields with --field,
            for example --field ssid=Guest --field password=pw123.
        """,
    )
    sp.add_argument("content", nargs="?", default="", help="The text, URL, etc.")
    sp.add_argument("output", help="A .png or .svg file.")
    sp.add_argument(
        "--type",
        default="text",
        choices=["url", "text", "email", "phone", "sms", "wifi", "vcard", "event", "location"],
    )
    sp.add_argument("--field", action="append", metavar="KEY=VALUE")
    sp.add_argument("--width", type=int)
    sp.add_argument("--margin", type=int)
    sp.add_argument("--error", choices=["L", "M", "Q", "H"])
    sp.add_argument("--foreground")
    sp.add_argument("--background")
    sp.add_argument("--gradient", choices=["linear", "radial"])
    sp.add_argument("--gradient-color", action="append", metavar="COLOR")
    sp.add_argument("--body-shape", default="square")
    sp.add_argument("--eye-frame-shape", default="square")
    sp.add_argument("--eye-ball-shape", default="square")
    sp.add_argument("--logo", metavar="FILE")
    sp.add_argument("--logo-remove-background", action="store_true")
    sp.add_argument("--frame", choices=["none", "square", "rounded", "banner"])
    sp.add_argument("--frame-color", default="#000000")
    sp.add_argument("--frame-text")

    sp = sub.add_parser("config", help="Write the effective configuration")
    sp.add_argument("output", help="TOML file to write.")
    return parser


def qr_options(args, cfg):
    opts = QROptions.from_config(cfg)
    if args.width:
        opts.width = args.width
    if args.margin is not None:
        opts.margin = args.margin
    if args.error:
        opts.error = args.error
    if args.foreground:
        opts.style.foreground = args.foreground
    if args.background:
        opts.style.background = args.background
    if args.gradient:
        opts.style.gradient = Gradient(args.gradient, args.gradient_color or [])
    opts.style.body_shape = args.body_shape
    opts.style.eye_frame_shape = args.eye_frame_shape
    opts.style.eye_ball_shape = args.eye_ball_shape
    if args.logo:
        opts.logo = Path(args.logo).read_bytes()
        opts.logo_spec = LogoSpec(remove_background=args.logo_remove_background)
    if args.frame:
        opts.frame = FrameSpec(args.frame, args.frame_color, args.frame_text)
    return opts


def run(args, cfg):
    if args.command == "config":
        write_config(args.output, cfg)
        print(f'Wrote configuration to "{args.output}"')
        return

    if args.command == "qr":
        if args.type in ("wifi", "vcard", "event"):
            content = format_content(args.type, parse_fields(args.field))
        else:
            content = format_content(args.type, args.content)
        opts = qr_options(args, cfg)
        out = Path(args.output)
        if out.suffix.casefold() == ".svg":
            out.write_text(generate_qr_svg(content, opts))
        else:
            out.write_bytes(generate_qr_png(content, opts))
        print(f'Wrote QR code to "{out}"')
        return

    if args.command in ("convert", "compress"):
        fin = Path(args.input)
        if args.command == "convert":
            opts = ProcessingOptions(
                quality=cfg["image"]["quality"] if args.quality is None else args.quality,
                background=args.background or cfg["image"]["background"],
            )
            data = convert_format(
                fin.read_bytes(), guess_mime_type(fin), Path(args.output).suffix, opts
            )
        else:
            opts = ProcessingOptions(
                quality=args.quality,
                compression_level=args.level,
                background=cfg["image"]["background"],
            )
            fmt = ImageFormat.from_string(Path(args.output).suffix)
            data = compress_image(fin.read_bytes(), guess_mime_type(fin), opts, fmt)
        Path(args.output).write_bytes(data)
        print(f'Wrote "{args.output}" ({len(data)} bytes)')
        return

    img = read_image(args.input)
    if args.command == "resize":
        img = resize(
            img,
            args.width,
            args.height,
            not args.stretch,
            algorithm=args.resample or cfg["image"]["resample"],
        )
    elif args.command == "upscale":
        img = upscale(img, args.factor, algorithm=args.resample)
    elif args.command == "crop":
        if args.aspect:
            area = crop_area_for_aspect(img.width, img.height, args.aspect)
        else:
            area = CropArea(args.x, args.y, args.width, args.height)
        img = crop(img, area)
    elif args.command == "rotate":
        img = rotate(img, args.angle, background=args.background)
    elif args.command == "flip":
        img = flip(img, args.horizontal, args.vertical)
    elif args.command == "filter":
        settings = FilterSettings(
            brightness=args.brightness,
            contrast=args.contrast,
            saturation=args.saturation,
            blur=args.blur,
            sepia=args.sepia,
            grayscale=args.grayscale,
        )
        img = apply_filters(img, settings)
    elif args.command == "rmbg":
        rb = cfg["background_removal"]
        img = remove_background(
            img,
            rb["sensitivity"] if args.sensitivity is None else args.sensitivity,
            feather=rb["feather"] if args.feather is None else args.feather,
            smoothing=rb["smoothing"] if args.smoothing is None else args.smoothing,
            sample="corner" if args.corner_sample else "median",
        )
    elif args.command == "watermark":
        spec = WatermarkSpec(
            position=args.position,
            color=args.color,
            opacity=args.opacity,
            shadow=args.shadow,
            scale=args.scale,
        )
        img = draw_watermark_text(img, args.text, spec)
    write_image(img, args.output, cfg)


def main():
    parser = get_parser()
    args = parser.parse_args()

    cfg = load_config(args.config)
    # 5 is to keep debug/info lined up
    fmtstr = "%(asctime)s %(levelname)5s:%(name)s\t%(message)s"
    logging.basicConfig(
        format=fmtstr,
        datefmt="%b%d %H:%M:%S %Z",
        level=(args.loglevel or cfg["logging"]["level"]).upper(),
    )

    if not args.command:
        # no command given so print help.
        parser.print_help()
        return
    try:
        run(args, cfg)
    except (PixoraBenignException, ValueError, OSError) as err:
        log.error("%s failed: %s", args.command, err)
        sys.exit(1)


if __name__ == "__main__":
    main()
