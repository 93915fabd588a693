# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

import pymupdf
from pytest import raises

from pixora.pdf_tools import (
    equal_part_ranges,
    merge_documents,
    page_count,
    reorder_pages,
    split_filename,
    split_pages,
    validate_ranges,
)
from pixora.pixora_exceptions import DecodeError, InvalidInputError


def _pdf(n, label="Page"):
    with pymupdf.open() as doc:
        for i in range(n):
            page = doc.new_page()
            page.insert_text((72, 72), f"{label} {i + 1}")
        return doc.tobytes()


def _texts(data):
    with pymupdf.open(stream=data, filetype="pdf") as doc:
        return [page.get_text().strip() for page in doc]


def test_page_count() -> None:
    assert page_count(_pdf(3)) == 3


def test_not_a_pdf() -> None:
    with raises(DecodeError):
        page_count(b"this is not a pdf")
    with raises(InvalidInputError):
        page_count(b"")


def test_split_ranges() -> None:
    parts = split_pages(_pdf(5), [(1, 2), (3, 3), (4, 5)])
    assert [page_count(p) for p in parts] == [2, 1, 2]
    assert _texts(parts[1]) == ["Page 3"]
    assert _texts(parts[2]) == ["Page 4", "Page 5"]


def test_split_bad_ranges() -> None:
    data = _pdf(3)
    for ranges in ([], [(0, 1)], [(2, 4)], [(3, 2)]):
        with raises(InvalidInputError):
            split_pages(data, ranges)


def test_validate_ranges() -> None:
    validate_ranges([(1, 1), (1, 3)], 3)
    with raises(InvalidInputError, match="1-3"):
        validate_ranges([(1, 4)], 3)


def test_equal_parts() -> None:
    assert equal_part_ranges(10, 3) == [(1, 4), (5, 8), (9, 10)]
    assert equal_part_ranges(3, 5) == [(1, 1), (2, 2), (3, 3)]
    assert equal_part_ranges(4) == [(1, 2), (3, 4)]
    with raises(InvalidInputError):
        equal_part_ranges(4, 0)


def test_merge() -> None:
    merged = merge_documents([_pdf(2, "A"), _pdf(1, "B")])
    assert _texts(merged) == ["A 1", "A 2", "B 1"]
    with raises(InvalidInputError):
        merge_documents([])
    with raises(DecodeError):
        merge_documents([_pdf(1), b"junk"])


def test_reorder() -> None:
    out = reorder_pages(_pdf(3), [3, 1])
    assert _texts(out) == ["Page 3", "Page 1"]
    with raises(InvalidInputError):
        reorder_pages(_pdf(3), [4])
    with raises(InvalidInputError):
        reorder_pages(_pdf(3), [])


def test_split_filename() -> None:
    assert split_filename("report.pdf", (3, 5)) == "report_pages_3-5.pdf"
    assert split_filename("report.PDF", (2, 2)) == "report_page_2.pdf"
    assert split_filename("notes", (1, 4)) == "notes_pages_1-4.pdf"
