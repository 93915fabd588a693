# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Exceptions for the Pixora tools.

Serious exceptions are for unexpected things that we probably cannot
sanely or safely recover from.  Benign are for signaling expected (or
at least not unexpected) situations, such as bad input from a caller.
"""


class PixoraException(Exception):
    """Catch-all parent of all Pixora-related exceptions."""

    pass


class PixoraSeriousException(PixoraException):
    """Serious or unexpected problems that are generally not recoverable."""

    pass


class PixoraBenignException(PixoraException):
    """A not-unexpected situation, often signaling an error condition."""

    pass


class InputValidationError(PixoraBenignException):
    """The caller gave us something we refuse to work with; never retried."""

    pass


class InvalidInputError(InputValidationError):
    pass


class InvalidCropError(InputValidationError):
    """The crop rectangle has no area once clamped to the image."""

    def __init__(self, msg=None):
        if not msg:
            msg = "Invalid crop area"
        super().__init__(msg)


class EmptyTextError(InputValidationError):
    """Text to be drawn was empty, with precisely that as the default message."""

    def __init__(self, msg=None):
        if not msg:
            msg = "Text cannot be empty"
        super().__init__(msg)


class EmptyContentError(InputValidationError):
    """QR code content was empty, with precisely that as the default message."""

    def __init__(self, msg=None):
        if not msg:
            msg = "QR code content cannot be empty"
        super().__init__(msg)


class ContentTooLargeError(InputValidationError):
    """The content does not fit in a QR code at the requested error level."""

    pass


class UnsupportedStyleError(InputValidationError):
    """The requested styling is not available on this output path."""

    pass


class UnsupportedFormatError(PixoraBenignException):
    pass


class DecodeError(PixoraBenignException):
    pass


class EncodeError(PixoraBenignException):
    pass


class StorageQuotaError(PixoraBenignException):
    """Persisting would exceed the storage quota."""

    def __init__(self, msg=None):
        if not msg:
            msg = "Storage quota exceeded"
        super().__init__(msg)
