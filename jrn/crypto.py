# -*- coding: utf-8 -*-
"""Encryptors for jrn.

An :class:`Encryptor` supplies the primitives (password hash/verify, KDF
salt, key derivation, per-entry AEAD) and builds whole-journal
encryption/decryption on top of them. It does **not** perform any file I/O.

Two implementations:

* :class:`Secure` - argon2 password hash, PBKDF2-HMAC-SHA256 key
  derivation, AES-256-GCM per entry.
* :class:`ZeroSecurity` - no hashing, no encryption. Tests only.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Tuple
import logging
import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .date import Date
from .db import KDF_SALT_LEN, NONCE_LEN, EncryptedEntry, EncryptedJournal
from .errors import IncorrectPassword, TamperedEntry
from .state import State

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------

PH = PasswordHasher(
    time_cost=2,
    memory_cost=102_400,
    parallelism=8,
    hash_len=32,
    salt_len=16,
)

KEY_LEN = 32
PBKDF2_ITERATIONS = 300_000


class Encryptor(ABC):
    """Password hashing, key derivation and per-entry encryption."""

    @abstractmethod
    def hash_password(self, password: str) -> str:
        """One-way hash; any salt is embedded in the returned string."""

    @abstractmethod
    def verify_password(self, hashed: str, candidate: str) -> bool:
        """True if *candidate* produced *hashed* under this scheme."""

    @abstractmethod
    def make_kdf_salt(self) -> bytes:
        """Return a 32-byte salt for :meth:`derive_key`."""

    @abstractmethod
    def derive_key(self, password: str, salt: bytes) -> bytes:
        """Stretch *password* into a 32-byte key."""

    @abstractmethod
    def encrypt_entry(self, key: bytes, date: Date, plaintext: str) -> EncryptedEntry:
        ...

    @abstractmethod
    def decrypt_entry(self, key: bytes, entry: EncryptedEntry) -> Tuple[Date, str]:
        """Raises TamperedEntry if *entry* fails authentication."""

    # -----------------------------------------------------------------
    # Whole journal
    # -----------------------------------------------------------------

    def encrypt_journal(self, state: State) -> EncryptedJournal:
        """Hash, salt and derive once, then encrypt each entry independently."""
        password_hash = self.hash_password(state.password)
        kdf_salt = self.make_kdf_salt()
        key = self.derive_key(state.password, kdf_salt)

        entries = {
            date: self.encrypt_entry(key, date, text)
            for date, text in state.entries.items()
        }
        logger.debug("Encrypted %d entries", len(entries))
        return EncryptedJournal(password_hash=password_hash, kdf_salt=kdf_salt, entries=entries)

    def decrypt_journal(self, journal: EncryptedJournal, password: str) -> State:
        """Check *password* against the stored hash, then decrypt every entry.

        Raises IncorrectPassword before any entry is touched if the password
        does not verify.
        """
        if not self.verify_password(journal.password_hash, password):
            raise IncorrectPassword()

        key = self.derive_key(password, journal.kdf_salt)
        entries: Dict[Date, str] = {}
        for entry in journal.entries.values():
            date, text = self.decrypt_entry(key, entry)
            entries[date] = text
        logger.debug("Decrypted %d entries", len(entries))
        return State(password=password, entries=entries)


# ---------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------

class ZeroSecurity(Encryptor):
    """Stores everything in the clear. DO NOT USE FOR REAL JOURNALS."""

    def hash_password(self, password: str) -> str:
        return password

    def verify_password(self, hashed: str, candidate: str) -> bool:
        return hashed == candidate

    def make_kdf_salt(self) -> bytes:
        return bytes(KDF_SALT_LEN)

    def derive_key(self, password: str, salt: bytes) -> bytes:
        return bytes(KEY_LEN)

    def encrypt_entry(self, key: bytes, date: Date, plaintext: str) -> EncryptedEntry:
        return EncryptedEntry(date=date, nonce=bytes(NONCE_LEN), digest=plaintext.encode("utf-8"))

    def decrypt_entry(self, key: bytes, entry: EncryptedEntry) -> Tuple[Date, str]:
        try:
            return entry.date, entry.digest.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TamperedEntry(f"Entry for {entry.date} is not UTF-8 text") from exc


class Secure(Encryptor):
    """argon2id + PBKDF2-HMAC-SHA256 (300k rounds) + AES-256-GCM.

    The entry's date is passed to AES-GCM as associated data, so swapping
    ciphertexts between dates fails authentication.
    """

    def hash_password(self, password: str) -> str:
        return PH.hash(password)

    def verify_password(self, hashed: str, candidate: str) -> bool:
        try:
            return PH.verify(hashed, candidate)
        except (VerificationError, InvalidHashError, UnicodeEncodeError):
            # VerifyMismatchError is a VerificationError; hashes must be ASCII
            return False

    def make_kdf_salt(self) -> bytes:
        return secrets.token_bytes(KDF_SALT_LEN)

    def derive_key(self, password: str, salt: bytes) -> bytes:
        logger.debug("Deriving key (PBKDF2, %d iterations)", PBKDF2_ITERATIONS)
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LEN,
            salt=salt,
            iterations=PBKDF2_ITERATIONS,
        )
        return kdf.derive(password.encode("utf-8"))

    def encrypt_entry(self, key: bytes, date: Date, plaintext: str) -> EncryptedEntry:
        # fresh random nonce on every call; never derived from the date
        nonce = secrets.token_bytes(NONCE_LEN)
        digest = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), _aad(date))
        return EncryptedEntry(date=date, nonce=nonce, digest=digest)

    def decrypt_entry(self, key: bytes, entry: EncryptedEntry) -> Tuple[Date, str]:
        try:
            plaintext = AESGCM(key).decrypt(entry.nonce, entry.digest, _aad(entry.date))
        except InvalidTag as exc:
            raise TamperedEntry(f"Entry for {entry.date} failed authentication") from exc
        return entry.date, plaintext.decode("utf-8")


def _aad(date: Date) -> bytes:
    return str(date).encode("ascii")
