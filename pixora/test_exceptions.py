# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

import pixora.pixora_exceptions
from pixora.pixora_exceptions import PixoraException, PixoraBenignException
from pixora.pixora_exceptions import InvalidCropError, EmptyContentError
from pixora.pixora_exceptions import InputValidationError, ContentTooLargeError
from pixora.pixora_exceptions import *  # noqa


def test_pixora_exc_string() -> None:
    e = PixoraException("foo")
    assert str(e) == "foo"


def test_exc_inheritance() -> None:
    e = InvalidCropError()
    assert isinstance(e, InputValidationError)
    assert isinstance(e, PixoraBenignException)
    assert isinstance(e, PixoraException)
    assert isinstance(ContentTooLargeError("x"), InputValidationError)


def test_exc_has_default_msg() -> None:
    e = EmptyContentError()
    assert "empty" in str(e).lower()
    e = EmptyContentError("foo")
    assert str(e) == "foo"


def test_exc_all_print_properly() -> None:
    names = [
        e
        for e in dir(pixora.pixora_exceptions)
        if e.endswith("Error") or e.startswith("Pixora")
    ]
    excs = [getattr(pixora.pixora_exceptions, e) for e in names]
    assert len(excs) > 10
    for exc in excs:
        assert str(exc("foo")) == "foo"
