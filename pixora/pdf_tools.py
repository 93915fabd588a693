# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Split, merge and reorder PDF documents.

This is a thin layer over PyMuPDF, working on documents held in memory
as bytes.  Page numbers here are 1-based and ranges are inclusive, the
way people count pages.
"""

from __future__ import annotations

import logging
import math
from pathlib import PurePath

import pymupdf

from pixora.pixora_exceptions import DecodeError, InvalidInputError


log = logging.getLogger("pdf")

PageRange = tuple[int, int]


def _open(data: bytes) -> pymupdf.Document:
    if not data:
        raise InvalidInputError("Cannot open an empty PDF")
    try:
        return pymupdf.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as err:
        raise DecodeError(f"Not a readable PDF: {err}") from err


def _to_bytes(doc: pymupdf.Document) -> bytes:
    return doc.tobytes(garbage=3, deflate=True)


def page_count(data: bytes) -> int:
    with _open(data) as doc:
        return len(doc)


def validate_ranges(ranges: list[PageRange], n: int) -> None:
    """Check page ranges against a document of n pages.

    Raises:
        InvalidInputError: no ranges, or a range that starts before
            page 1, ends after page n, or ends before it starts.
    """
    if not ranges:
        raise InvalidInputError("No pages selected")
    bad = [(a, b) for a, b in ranges if a < 1 or b > n or a > b]
    if bad:
        raise InvalidInputError(
            f"Invalid page ranges {bad}: pages must be within 1-{n}"
        )


def equal_part_ranges(n: int, parts: int = 2) -> list[PageRange]:
    """Ranges cutting n pages into the given number of similar parts.

    Each part has ``ceil(n / parts)`` pages except perhaps the last; if
    there are too few pages, there are fewer parts.
    """
    if parts < 1:
        raise InvalidInputError(f"Cannot split into {parts} parts")
    per = math.ceil(n / parts)
    ranges = []
    for i in range(parts):
        a = i * per + 1
        if a > n:
            break
        ranges.append((a, min((i + 1) * per, n)))
    return ranges


def split_pages(data: bytes, ranges: list[PageRange]) -> list[bytes]:
    """Make one new PDF for each page range.

    Args:
        data: the source PDF.
        ranges: ``(from, to)`` pairs, 1-based and inclusive.

    Returns:
        The new PDFs, in the order of the ranges.

    Raises:
        InvalidInputError: bad ranges, see :func:`validate_ranges`.
        DecodeError: the source is not a PDF.
    """
    out = []
    with _open(data) as src:
        n = len(src)
        validate_ranges(ranges, n)
        for a, b in ranges:
            with pymupdf.open() as part:
                part.insert_pdf(src, from_page=a - 1, to_page=b - 1)
                out.append(_to_bytes(part))
    log.info("Split %d ranges from a %d page PDF", len(ranges), n)
    return out


def merge_documents(docs: list[bytes]) -> bytes:
    """Concatenate PDFs into one, in the order given."""
    if not docs:
        raise InvalidInputError("No PDFs to merge")
    with pymupdf.open() as merged:
        for data in docs:
            with _open(data) as src:
                merged.insert_pdf(src)
        log.info("Merged %d PDFs into %d pages", len(docs), len(merged))
        return _to_bytes(merged)


def reorder_pages(data: bytes, order: list[int]) -> bytes:
    """A PDF with the given pages in the given order.

    Pages left out of ``order`` are dropped and pages may repeat.

    Args:
        data: the source PDF.
        order: 1-based page numbers.
    """
    with _open(data) as doc:
        n = len(doc)
        if not order:
            raise InvalidInputError("No pages selected")
        bad = [p for p in order if not 1 <= p <= n]
        if bad:
            raise InvalidInputError(f"No such pages {bad} in a {n} page PDF")
        doc.select([p - 1 for p in order])
        return _to_bytes(doc)


def split_filename(name: str, page_range: PageRange) -> str:
    """Name for a piece of a split PDF, such as ``report_pages_3-5.pdf``."""
    stem = PurePath(name).stem if name.lower().endswith(".pdf") else name
    a, b = page_range
    if a == b:
        return f"{stem}_page_{a}.pdf"
    return f"{stem}_pages_{a}-{b}.pdf"
