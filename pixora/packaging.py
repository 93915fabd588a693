# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Bundle several outputs into a single zip file, in memory."""

from __future__ import annotations

import io
import logging
from pathlib import PurePath
import zipfile

from pixora.pixora_exceptions import InvalidInputError


log = logging.getLogger("storage")


def unique_names(names: list[str]) -> list[str]:
    """Make names distinct by adding ``-1``, ``-2``... before the extension."""
    seen: set[str] = set()
    out = []
    for name in names:
        candidate = name
        p = PurePath(name)
        k = 0
        while candidate in seen:
            k += 1
            candidate = str(p.with_name(f"{p.stem}-{k}{p.suffix}"))
        seen.add(candidate)
        out.append(candidate)
    return out


def package_files(files: list[tuple[str, bytes]]) -> bytes:
    """Zip up named blobs.

    Args:
        files: ``(name, data)`` pairs.  Repeated names get a numeric
            suffix rather than overwriting one another.

    Returns:
        The bytes of a deflated zip archive.

    Raises:
        InvalidInputError: nothing to package, or a file with no name.
    """
    if not files:
        raise InvalidInputError("No files to package")
    if any(not name for name, _ in files):
        raise InvalidInputError("Every packaged file needs a name")
    names = unique_names([name for name, _ in files])
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for name, (_, data) in zip(names, files):
            z.writestr(name, data)
    log.info("Packaged %d files into %d bytes", len(files), buf.tell())
    return buf.getvalue()
