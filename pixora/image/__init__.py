# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Pixora tools for decoding, transforming and re-encoding bitmaps."""

__copyright__ = "Copyright (C) 2025 The Pixora Tools Developers"
__credits__ = "The Pixora Tools Developers"
__license__ = "AGPL-3.0-or-later"

from pixora import __version__

from .bitmap import ImageFormat, EncodeSpec, decode_image, encode_image, parse_color
from .geometry import CropArea, Resample, resize, upscale, crop, rotate, flip
from .geometry import crop_pixels, crop_area_for_aspect
from .filters import FilterSettings, apply_filters
from .background import remove_background
from .compositing import WatermarkPosition, WatermarkSpec, draw_watermark_text
from .compositing import LogoSpec, draw_logo, FrameStyle, FrameSpec, draw_frame
from .tools import CompressionLevel, ProcessingOptions
from .tools import compression_quality, compress_image, convert_format
from .batch import BatchItem, BatchResult, process_batch

# what you get from "from pixora.image import *"
__all__ = [
    "ImageFormat",
    "EncodeSpec",
    "decode_image",
    "encode_image",
    "parse_color",
    "CropArea",
    "Resample",
    "resize",
    "upscale",
    "crop",
    "crop_pixels",
    "crop_area_for_aspect",
    "rotate",
    "flip",
    "FilterSettings",
    "apply_filters",
    "remove_background",
    "WatermarkPosition",
    "WatermarkSpec",
    "draw_watermark_text",
    "LogoSpec",
    "draw_logo",
    "FrameStyle",
    "FrameSpec",
    "draw_frame",
    "CompressionLevel",
    "ProcessingOptions",
    "compression_quality",
    "compress_image",
    "convert_format",
    "BatchItem",
    "BatchResult",
    "process_batch",
]
