# -*- coding: utf-8 -*-
"""Application logic that composes the config, crypto and state layers.

This module provides the public API used by the UI. It does not contain any
Textual UI code. The environment is read once, by :func:`resolve_config`;
everything else takes a :class:`JournalConfig`.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple
import hmac
import json
import logging
import os

from .crypto import Encryptor, Secure, ZeroSecurity
from .date import Date
from .errors import IncorrectPassword, NotAccessible
from .state import State

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Config management (JSON on disk)
# ---------------------------------------------------------------------

APP_NAME = "jrn"
CONFIG_FILE_ENV = "JRN_CONFIG_FILE"
JOURNAL_ENV = "JRN_JOURNAL"

DEFAULT_CONFIG: Dict[str, Any] = {
    "journal_path": "./jrn.json",
    "password": None,
    "password_file": None,
    "insecure": False,
    "log_file": None,
    "log_level": "INFO",
}

PREVIEW_LEN = 60


@dataclass(frozen=True)
class JournalConfig:
    """Settings resolved once at startup and passed into the app."""

    journal_path: Path = Path(DEFAULT_CONFIG["journal_path"])
    password: Optional[str] = None
    password_file: Optional[Path] = None
    insecure: bool = False
    log_file: Optional[Path] = None
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JournalConfig":
        def _path(key: str) -> Optional[Path]:
            value = data.get(key)
            return Path(value).expanduser() if value else None

        return cls(
            journal_path=_path("journal_path") or Path(DEFAULT_CONFIG["journal_path"]),
            password=data.get("password") or None,
            password_file=_path("password_file"),
            insecure=bool(data.get("insecure", False)),
            log_file=_path("log_file"),
            log_level=str(data.get("log_level") or "INFO").upper(),
        )


def _config_dir(environ: Mapping[str, str]) -> Path:
    """Return the config directory path for this platform."""
    home = environ.get("HOME") or os.path.expanduser("~")
    if os.name == "nt":
        base = environ.get("APPDATA", os.path.join(home, "AppData", "Roaming"))
        return Path(base) / APP_NAME
    base = environ.get("XDG_CONFIG_HOME") or os.path.join(home, ".config")
    return Path(base) / APP_NAME


def find_config_file(environ: Mapping[str, str]) -> Optional[Path]:
    """``$JRN_CONFIG_FILE`` if it exists, else the platform config.json if it exists."""
    explicit = environ.get(CONFIG_FILE_ENV)
    if explicit and Path(explicit).expanduser().is_file():
        return Path(explicit).expanduser()
    default = _config_dir(environ) / "config.json"
    if default.is_file():
        return default
    return None


def load_config_file(path: Optional[Path]) -> Dict[str, Any]:
    """Defaults merged with the JSON file at *path*.

    A broken config file is logged and ignored rather than fatal.
    """
    merged = dict(DEFAULT_CONFIG)
    if path is None:
        return merged
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring config file %s: %s", path, exc)
        return merged
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: not a JSON object", path)
        return merged
    merged.update(data)
    return merged


def resolve_config(
    environ: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None,
) -> JournalConfig:
    """Build the JournalConfig: defaults, then config file, then environment."""
    if environ is None:
        environ = os.environ
    path = config_file if config_file is not None else find_config_file(environ)
    data = load_config_file(path)
    if environ.get(JOURNAL_ENV):
        data["journal_path"] = environ[JOURNAL_ENV]
    config = JournalConfig.from_dict(data)
    logger.debug("Using config file %s, journal %s", path, config.journal_path)
    return config


def get_encryptor(config: JournalConfig) -> Encryptor:
    if config.insecure:
        logger.warning("Insecure mode: journal is stored UNENCRYPTED")
        return ZeroSecurity()
    return Secure()


def resolve_password(config: JournalConfig) -> Optional[str]:
    """Configured password, else the first line of the password file."""
    if config.password:
        return config.password
    if config.password_file is None:
        return None
    try:
        text = config.password_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise NotAccessible(f"Cannot read password file {config.password_file}: {exc}") from exc
    lines = text.splitlines()
    return lines[0] if lines else ""


# ---------------------------------------------------------------------
# Journal session
# ---------------------------------------------------------------------

def journal_exists(config: JournalConfig) -> bool:
    return config.journal_path.exists()


def create_journal(config: JournalConfig, password: str) -> State:
    """Start an empty journal protected by *password* and write it out."""
    if not password:
        raise ValueError("Password required")
    state = State(password=password)
    state.save(config.journal_path, get_encryptor(config))
    logger.info("Created journal at %s", config.journal_path)
    return state


def open_journal(config: JournalConfig, password: str) -> State:
    """Decrypt the configured journal. IncorrectPassword may be retried."""
    try:
        return State.open(config.journal_path, password, get_encryptor(config))
    except IncorrectPassword:
        logger.warning("Incorrect password for %s", config.journal_path)
        raise


def save_journal(config: JournalConfig, state: State) -> None:
    state.save(config.journal_path, get_encryptor(config))


def preview(text: str, limit: int = PREVIEW_LEN) -> str:
    """First non-empty line of *text*, shortened to *limit* characters."""
    line = next((ln.strip() for ln in text.splitlines() if ln.strip()), "")
    if len(line) > limit:
        return line[: limit - 1] + "…"
    return line


def list_entries(state: State) -> List[Tuple[Date, str]]:
    """Return (date, preview) pairs, newest first."""
    return [(d, preview(state.entries[d])) for d in reversed(state.dates())]


def change_password(state: State, current: str, new: str) -> None:
    """Swap the in-memory password after checking *current*; caller saves."""
    if not hmac.compare_digest(current.encode("utf-8"), state.password.encode("utf-8")):
        raise IncorrectPassword("Current password is incorrect")
    if not new:
        raise ValueError("New password required")
    state.change_password(new)

