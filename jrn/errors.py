# -*- coding: utf-8 -*-
"""Exception types raised by the jrn core.

Every expected failure (bad date text, missing file, wrong password, corrupt
journal, failed write) has its own type so callers can branch on it. The
only retryable one is :class:`IncorrectPassword`.
"""
from __future__ import annotations


class JrnError(Exception):
    """Base class for all jrn errors."""


# ---------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------

class DateParseError(JrnError, ValueError):
    """Text could not be parsed into a Date."""


class InvalidTodayOffset(DateParseError):
    """Starts with ``today`` but is not followed by ``-N``."""


class WrongFieldCount(DateParseError):
    """Absolute form does not have exactly three ``-`` separated fields."""


class NotNumeric(DateParseError):
    """A year, month or day field is not an integer."""


class InvalidCalendarDate(DateParseError):
    """Fields are numeric but do not name a real day."""


# ---------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------

class LoadError(JrnError):
    """Reading, decoding or decrypting a journal file failed."""


class NotAccessible(LoadError):
    """The file does not exist or cannot be read."""


class FormatError(LoadError):
    """The file was read but its contents are malformed."""


class ParseError(FormatError):
    """The file is not a valid journal document."""


class ConversionError(FormatError):
    """A base64 field could not be turned back into bytes."""


class InvalidBase64(ConversionError):
    """Field is not valid standard padded base64."""


class InvalidLength(ConversionError):
    """Field decoded to the wrong number of bytes."""

    def __init__(self, field: str, expected: int, actual: int) -> None:
        super().__init__(f"{field} must decode to {expected} bytes, got {actual}")
        self.field = field
        self.expected = expected
        self.actual = actual


class DecryptError(LoadError):
    """Authentication failed while decrypting."""


class IncorrectPassword(DecryptError):
    """The password does not match the stored hash."""

    def __init__(self, message: str = "Incorrect password") -> None:
        super().__init__(message)


class TamperedEntry(DecryptError):
    """An entry's integrity tag did not verify."""


# ---------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------

class SaveError(JrnError):
    """Encrypting, serializing or writing a journal failed."""


class SerializationError(SaveError):
    """The journal could not be turned into a JSON document."""


class FileError(SaveError):
    """The journal file could not be written."""
