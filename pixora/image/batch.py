# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Run one image tool over many files."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from multiprocessing import Pool
from pathlib import PurePath

from tqdm import tqdm

from pixora.image.bitmap import ImageFormat
from pixora.image.tools import ProcessingOptions, convert_format
from pixora.pixora_exceptions import PixoraException


log = logging.getLogger("batch")


@dataclass
class BatchItem:
    name: str
    data: bytes
    mime_type: str


@dataclass
class BatchResult:
    """The outcome for one item: either data or an error message."""

    name: str
    data: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def output_name(name: str, fmt: ImageFormat) -> str:
    """Swap the file extension for the output format's."""
    return str(PurePath(name).with_suffix(f".{fmt.value}"))


def _process_one(job: tuple[BatchItem, ImageFormat, ProcessingOptions]) -> BatchResult:
    item, fmt, options = job
    try:
        data = convert_format(item.data, item.mime_type, fmt, options)
    except PixoraException as err:
        # a bad file should not sink the rest of the batch
        log.warning('Failed to process "%s": %s', item.name, err)
        return BatchResult(item.name, error=str(err))
    return BatchResult(output_name(item.name, fmt), data=data)


def process_batch(
    items: list[BatchItem],
    output_format: ImageFormat | str = ImageFormat.PNG,
    options: ProcessingOptions | None = None,
    *,
    processes: int | None = None,
    progress: bool = True,
) -> list[BatchResult]:
    """Convert and transform each item independently.

    Items share nothing so they are spread over a pool of worker
    processes.  Each succeeds or fails on its own.

    Args:
        items: the encoded images with names and mime types.
        output_format: png, jpeg or webp.
        options: transforms applied to every item.

    Keyword Args:
        processes: size of the worker pool, default one per CPU.  Use
            1 to work in this process.
        progress: show a tqdm progress bar.

    Returns:
        One result per item, in the same order as the items.
    """
    fmt = ImageFormat.from_string(output_format)
    if options is None:
        options = ProcessingOptions()
    jobs = [(item, fmt, options) for item in items]
    N = len(jobs)
    log.info("Processing %d images to %s", N, fmt.value)
    if processes == 1 or N < 2:
        results = [_process_one(j) for j in tqdm(jobs, disable=not progress)]
    else:
        with Pool(processes) as p:
            results = list(tqdm(p.imap(_process_one, jobs), total=N, disable=not progress))
    failed = sum(1 for r in results if not r.ok)
    if failed:
        log.warning("%d of %d images failed", failed, N)
    return results
