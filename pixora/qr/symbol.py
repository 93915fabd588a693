# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Encode text into a QR symbol, the grid of dark and light modules."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging

import segno

from pixora.pixora_exceptions import (
    ContentTooLargeError,
    EmptyContentError,
    InvalidInputError,
)


log = logging.getLogger("qr")

# share of codewords that can be damaged and still read
ERROR_LEVELS = {"L": 0.07, "M": 0.15, "Q": 0.25, "H": 0.30}

# characters a version 40 symbol holds, by encoding mode and level
_capacity = {
    "numeric": {"L": 7089, "M": 5596, "Q": 3993, "H": 3057},
    "alphanumeric": {"L": 4296, "M": 3391, "Q": 2420, "H": 1852},
    "byte": {"L": 2953, "M": 2331, "Q": 1663, "H": 1273},
}

_alphanumeric = frozenset("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ $%*+-./:")

FINDER_SIZE = 7


def _error_level(level: str) -> str:
    lvl = str(level).upper()
    if lvl not in ERROR_LEVELS:
        raise InvalidInputError(
            f'Unknown error correction level "{level}": expected one of L, M, Q, H'
        )
    return lvl


def encoding_mode(text: str) -> str:
    """The densest single QR mode that can hold all of the text."""
    if all(c in "0123456789" for c in text):
        return "numeric"
    if all(c in _alphanumeric for c in text):
        return "alphanumeric"
    return "byte"


def encoded_length(text: str) -> int:
    """Length of the text in units of its mode: characters, or bytes."""
    mode = encoding_mode(text)
    if mode != "byte":
        return len(text)
    try:
        return len(text.encode("iso-8859-1"))
    except UnicodeEncodeError:
        return len(text.encode("utf-8"))


def qr_capacity(level: str = "M", mode: str = "byte") -> int:
    """How much a QR code can hold at this error correction level.

    Args:
        level: one of L, M, Q, H.
        mode: numeric, alphanumeric or byte.

    Returns:
        Characters for numeric and alphanumeric, bytes for byte mode.
    """
    try:
        return _capacity[mode][_error_level(level)]
    except KeyError:
        raise InvalidInputError(f'Unknown QR encoding mode "{mode}"') from None


@dataclass(frozen=True)
class QRSymbol:
    """An encoded QR code, without a quiet zone.

    Attributes:
        text: what was encoded.
        error: the error correction level, L, M, Q or H.
        version: 1 to 40, which fixes the size.
        matrix: rows of booleans, True for dark modules.
    """

    text: str
    error: str
    version: int
    matrix: tuple[tuple[bool, ...], ...]
    code: segno.QRCode = field(repr=False, compare=False)

    @property
    def size(self) -> int:
        """Modules per side, ``17 + 4 * version``."""
        return len(self.matrix)

    def is_dark(self, row: int, col: int) -> bool:
        """Dark module test, off-grid counts as light."""
        if 0 <= row < self.size and 0 <= col < self.size:
            return self.matrix[row][col]
        return False

    def finder_origins(self) -> list[tuple[int, int]]:
        """Top-left (row, col) of the three finder patterns."""
        far = self.size - FINDER_SIZE
        return [(0, 0), (0, far), (far, 0)]

    def in_finder(self, row: int, col: int) -> bool:
        return any(
            r <= row < r + FINDER_SIZE and c <= col < c + FINDER_SIZE
            for r, c in self.finder_origins()
        )


def generate_qr_symbol(text: str, error: str = "M") -> QRSymbol:
    """Encode text as a QR code at the given error correction level.

    The smallest version that fits is chosen.  The error correction
    level is not boosted even if there is room.

    Args:
        text: the content, not empty.
        error: L (7%), M (15%), Q (25%) or H (30%) recovery.

    Raises:
        EmptyContentError: text empty or whitespace.
        ContentTooLargeError: more than a version 40 code holds at
            this level.
        InvalidInputError: unknown error correction level.
    """
    if not text or not text.strip():
        raise EmptyContentError()
    level = _error_level(error)
    mode = encoding_mode(text)
    n = encoded_length(text)
    cap = qr_capacity(level, mode)
    if n > cap:
        raise ContentTooLargeError(
            f"Content too long for QR code: {n} {mode} units, "
            f"level {level} holds at most {cap}"
        )
    try:
        qr = segno.make(text, error=level, micro=False, boost_error=False)
    except segno.DataOverflowError as err:
        raise ContentTooLargeError(f"Content too long for QR code: {err}") from err
    matrix = tuple(tuple(bool(v) for v in row) for row in qr.matrix)
    log.debug("Encoded %d %s units as version %s-%s", n, mode, qr.version, level)
    return QRSymbol(text=text, error=level, version=qr.version, matrix=matrix, code=qr)
