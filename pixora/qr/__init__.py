# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Pixora tools for generating styled QR codes."""

__copyright__ = "Copyright (C) 2025 The Pixora Tools Developers"
__credits__ = "The Pixora Tools Developers"
__license__ = "AGPL-3.0-or-later"

from pixora import __version__

from .content import ContentType, WifiSecurity, format_content
from .content import wifi_content, vcard_content, event_content
from .content import email_content, phone_content, sms_content, location_content
from .symbol import QRSymbol, generate_qr_symbol, qr_capacity
from .render import BodyShape, EyeShape, Gradient, GradientType, QRStyle, rasterize_qr
from .svg import vectorize_qr
from .pipeline import QROptions, GeneratedQR, raster_only_features
from .pipeline import generate_qr_code, generate_qr_png, generate_qr_svg
from .pipeline import generate_bulk_qr_codes

# what you get from "from pixora.qr import *"
__all__ = [
    "ContentType",
    "WifiSecurity",
    "format_content",
    "wifi_content",
    "vcard_content",
    "event_content",
    "email_content",
    "phone_content",
    "sms_content",
    "location_content",
    "QRSymbol",
    "generate_qr_symbol",
    "qr_capacity",
    "BodyShape",
    "EyeShape",
    "Gradient",
    "GradientType",
    "QRStyle",
    "rasterize_qr",
    "vectorize_qr",
    "QROptions",
    "GeneratedQR",
    "raster_only_features",
    "generate_qr_code",
    "generate_qr_png",
    "generate_qr_svg",
    "generate_bulk_qr_codes",
]
