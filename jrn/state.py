# -*- coding: utf-8 -*-
"""Decrypted journal state and its load/save pipeline.

``load``: read file -> parse JSON -> decode base64 -> verify password ->
decrypt. ``save`` runs the same steps backwards with a fresh salt, hash, key
and per-entry nonce every time.

A journal file is assumed to be owned by a single process while it is open.
Changes made to the file by anything else between ``load`` and ``save`` are
overwritten.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional
import datetime as _dt
import logging

from . import db
from .date import Date

if TYPE_CHECKING:
    from .crypto import Encryptor

logger = logging.getLogger(__name__)


@dataclass
class State:
    """A password and one text entry per date. The password never hits disk."""

    password: str = ""
    entries: Dict[Date, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"State(password='***', entries=<{len(self.entries)} entries>)"

    # -----------------------------------------------------------------
    # Entries
    # -----------------------------------------------------------------

    def get_entry(self, date: Date) -> Optional[str]:
        return self.entries.get(date)

    def set_entry(self, date: Date, content: str) -> None:
        """Create or overwrite the entry for *date*."""
        self.entries[date] = content

    def delete_entry(self, date: Date) -> bool:
        """Remove *date*'s entry; False if there was none."""
        return self.entries.pop(date, None) is not None

    def get_today(self, today: Optional[_dt.date] = None) -> Optional[str]:
        return self.get_entry(Date.today(today))

    def set_today(self, content: str, today: Optional[_dt.date] = None) -> None:
        self.set_entry(Date.today(today), content)

    def dates(self) -> List[Date]:
        return sorted(self.entries)

    def change_password(self, new_password: str) -> None:
        """Replace the in-memory password. Takes effect on the next save."""
        self.password = new_password

    # -----------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------

    @classmethod
    def open(cls, path: db.PathLike, password: str, encryptor: "Encryptor") -> "State":
        """Load *path* into a new State."""
        state = cls()
        state.load(path, password, encryptor)
        return state

    def load(self, path: db.PathLike, password: str, encryptor: "Encryptor") -> None:
        """Replace this State with the decrypted contents of *path*.

        Raises a :class:`~jrn.errors.LoadError` subclass; on failure this
        State is left exactly as it was and the file is never written.
        """
        text = db.read_journal_file(path)
        stored = db.StoredJournal.from_json(text)
        encrypted = stored.to_encrypted()
        decrypted = encryptor.decrypt_journal(encrypted, password)

        self.password = decrypted.password
        self.entries = decrypted.entries
        logger.info("Loaded %d entries from %s", len(self.entries), path)

    def save(self, path: db.PathLike, encryptor: "Encryptor") -> None:
        """Encrypt everything and write it to *path*.

        Raises SerializationError or FileError.
        """
        encrypted = encryptor.encrypt_journal(self)
        stored = db.StoredJournal.from_encrypted(encrypted)
        db.write_journal_file(path, stored.to_json())
        logger.info("Saved %d entries to %s", len(self.entries), path)
