# -*- coding: utf-8 -*-
"""On-disk journal format and file access for jrn.

Two shapes of the same journal live here:

* :class:`EncryptedJournal` holds raw bytes (salt, nonces, ciphertexts) as
  produced by an :class:`~jrn.crypto.Encryptor`.
* :class:`StoredJournal` is its text-safe mirror (standard padded base64)
  that is written to disk as a JSON document.

Converting encrypted -> stored always succeeds. Stored -> encrypted checks
the base64 and the fixed field lengths. Both directions are exact inverses.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union
import base64
import contextlib
import json
import logging
import os

from .date import Date
from .errors import (
    DateParseError,
    FileError,
    InvalidBase64,
    InvalidLength,
    NotAccessible,
    ParseError,
    SerializationError,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

KDF_SALT_LEN = 32
NONCE_LEN = 12


# ---------------------------------------------------------------------
# Binary form
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class EncryptedEntry:
    """One entry: date in clear, nonce, and the AEAD output (ciphertext + tag)."""

    date: Date
    nonce: bytes
    digest: bytes


@dataclass
class EncryptedJournal:
    """Password hash, KDF salt, and entries keyed by date."""

    password_hash: str
    kdf_salt: bytes
    entries: Dict[Date, EncryptedEntry] = field(default_factory=dict)


# ---------------------------------------------------------------------
# Text form
# ---------------------------------------------------------------------

def b64_encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def b64_decode(text: str, field_name: str) -> bytes:
    """Strict standard-alphabet decode; raises InvalidBase64."""
    try:
        return base64.b64decode(text, validate=True)
    except ValueError as exc:
        # binascii.Error and non-ASCII input both land here
        raise InvalidBase64(f"{field_name} is not valid base64") from exc


def b64_decode_exact(text: str, field_name: str, length: int) -> bytes:
    raw = b64_decode(text, field_name)
    if len(raw) != length:
        raise InvalidLength(field_name, length, len(raw))
    return raw


@dataclass(frozen=True)
class StoredEntry:
    date: Date
    nonce: str
    digest: str

    @classmethod
    def from_encrypted(cls, entry: EncryptedEntry) -> "StoredEntry":
        return cls(entry.date, b64_encode(entry.nonce), b64_encode(entry.digest))

    def to_encrypted(self) -> EncryptedEntry:
        return EncryptedEntry(
            date=self.date,
            nonce=b64_decode_exact(self.nonce, f"nonce of {self.date}", NONCE_LEN),
            digest=b64_decode(self.digest, f"digest of {self.date}"),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"date": str(self.date), "nonce": self.nonce, "digest": self.digest}


@dataclass
class StoredJournal:
    """The JSON document as it appears on disk."""

    password_hash: str
    kdf_salt: str
    entries: Dict[Date, StoredEntry] = field(default_factory=dict)

    @classmethod
    def from_encrypted(cls, journal: EncryptedJournal) -> "StoredJournal":
        return cls(
            password_hash=journal.password_hash,
            kdf_salt=b64_encode(journal.kdf_salt),
            entries={d: StoredEntry.from_encrypted(e) for d, e in journal.entries.items()},
        )

    def to_encrypted(self) -> EncryptedJournal:
        """Decode every base64 field; raises a ConversionError subclass."""
        return EncryptedJournal(
            password_hash=self.password_hash,
            kdf_salt=b64_decode_exact(self.kdf_salt, "kdf_salt", KDF_SALT_LEN),
            entries={d: e.to_encrypted() for d, e in self.entries.items()},
        )

    # -----------------------------------------------------------------
    # JSON
    # -----------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "password_hash": self.password_hash,
            "kdf_salt": self.kdf_salt,
            # sorted so repeated saves of the same journal diff cleanly
            "entries": [self.entries[d].to_dict() for d in sorted(self.entries)],
        }

    def to_json(self) -> str:
        try:
            return json.dumps(self.to_dict(), indent=2)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Could not serialize journal: {exc}") from exc

    @classmethod
    def from_json(cls, text: str) -> "StoredJournal":
        """Parse a journal document; raises ParseError on any shape problem."""
        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as exc:
            # JSONDecodeError is a ValueError; deep nesting exhausts the stack
            raise ParseError(f"Journal is not valid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise ParseError("Journal must be a JSON object")
        password_hash = _require_str(data, "password_hash")
        kdf_salt = _require_str(data, "kdf_salt")
        raw_entries = data.get("entries")
        if not isinstance(raw_entries, list):
            raise ParseError("'entries' must be a list")

        entries: Dict[Date, StoredEntry] = {}
        for raw in raw_entries:
            if not isinstance(raw, dict):
                raise ParseError("each entry must be a JSON object")
            date_text = _require_str(raw, "date")
            try:
                date = Date.parse_absolute(date_text)
            except DateParseError as exc:
                raise ParseError(f"Bad entry date {date_text!r}: {exc}") from exc
            if date in entries:
                raise ParseError(f"Duplicate entry for {date}")
            entries[date] = StoredEntry(date, _require_str(raw, "nonce"), _require_str(raw, "digest"))

        return cls(password_hash=password_hash, kdf_salt=kdf_salt, entries=entries)


def _require_str(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise ParseError(f"'{key}' must be a string")
    return value


# ---------------------------------------------------------------------
# File access
# ---------------------------------------------------------------------

def read_journal_file(path: PathLike) -> str:
    """Return the file's text; raises NotAccessible if it cannot be read."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise NotAccessible(f"Cannot read journal {os.fspath(path)}: {exc}") from exc


def write_journal_file(path: PathLike, text: str) -> None:
    """Replace *path* with *text* via a sibling temp file; raises FileError."""
    target = Path(path)
    tmp_path = target.with_name(target.name + ".tmp")
    try:
        with tmp_path.open("w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise FileError(f"Cannot write journal {target}: {exc}") from exc
    logger.debug("Wrote %d bytes to %s", len(text), target)
