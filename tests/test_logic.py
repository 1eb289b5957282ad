"""Tests for jrn.logic: config resolution and the journal session API."""

import json
from pathlib import Path

import pytest

from jrn.crypto import Secure, ZeroSecurity
from jrn.date import Date
from jrn.errors import IncorrectPassword, NotAccessible
from jrn.logic import (
    JournalConfig,
    change_password,
    create_journal,
    find_config_file,
    get_encryptor,
    journal_exists,
    list_entries,
    load_config_file,
    open_journal,
    preview,
    resolve_config,
    resolve_password,
    save_journal,
)
from jrn.state import State


@pytest.fixture
def env(tmp_path):
    """An environment with nothing configured."""
    return {"HOME": str(tmp_path / "home")}


@pytest.fixture
def config(tmp_path):
    return JournalConfig(journal_path=tmp_path / "jrn.json", insecure=True)


def write_config(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


class TestResolveConfig:
    def test_defaults(self, env):
        cfg = resolve_config(env)
        assert cfg == JournalConfig()
        assert cfg.journal_path == Path("./jrn.json")
        assert cfg.insecure is False
        assert cfg.password is None

    def test_explicit_config_file_env(self, env, tmp_path):
        path = write_config(tmp_path / "cfg.json", {"journal_path": "/data/j.json", "insecure": True})
        env["JRN_CONFIG_FILE"] = str(path)
        cfg = resolve_config(env)
        assert cfg.journal_path == Path("/data/j.json")
        assert cfg.insecure is True

    def test_xdg_config_home(self, env, tmp_path):
        write_config(tmp_path / "xdg" / "jrn" / "config.json", {"password_file": "/run/secret"})
        env["XDG_CONFIG_HOME"] = str(tmp_path / "xdg")
        assert resolve_config(env).password_file == Path("/run/secret")

    def test_home_config(self, env):
        write_config(Path(env["HOME"]) / ".config" / "jrn" / "config.json", {"log_level": "debug"})
        assert resolve_config(env).log_level == "DEBUG"

    def test_missing_explicit_file_falls_through(self, env, tmp_path):
        env["JRN_CONFIG_FILE"] = str(tmp_path / "nope.json")
        assert find_config_file(env) is None

    def test_journal_env_overrides_file(self, env, tmp_path):
        path = write_config(tmp_path / "cfg.json", {"journal_path": "/data/j.json"})
        env["JRN_CONFIG_FILE"] = str(path)
        env["JRN_JOURNAL"] = "/elsewhere.json"
        assert resolve_config(env).journal_path == Path("/elsewhere.json")

    def test_explicit_config_file_argument(self, env, tmp_path):
        path = write_config(tmp_path / "cfg.json", {"journal_path": "a.json"})
        assert resolve_config(env, config_file=path).journal_path == Path("a.json")

    def test_malformed_file_ignored(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text("{oops")
        assert load_config_file(path)["journal_path"] == "./jrn.json"

    def test_non_object_file_ignored(self, tmp_path):
        path = write_config(tmp_path / "cfg.json", [1, 2])
        assert load_config_file(path)["insecure"] is False


class TestPassword:
    def test_none_configured(self, config):
        assert resolve_password(config) is None

    def test_configured_password(self, tmp_path):
        assert resolve_password(JournalConfig(password="pw")) == "pw"

    def test_password_file_first_line(self, tmp_path):
        secret = tmp_path / "secret"
        secret.write_text("s3cret\nignored\n")
        assert resolve_password(JournalConfig(password_file=secret)) == "s3cret"

    def test_missing_password_file(self, tmp_path):
        with pytest.raises(NotAccessible):
            resolve_password(JournalConfig(password_file=tmp_path / "missing"))


class TestSession:
    def test_encryptor_choice(self, config):
        assert isinstance(get_encryptor(config), ZeroSecurity)
        assert isinstance(get_encryptor(JournalConfig()), Secure)

    def test_create_open_save(self, config):
        assert not journal_exists(config)
        state = create_journal(config, "pw")
        assert journal_exists(config)
        assert state == State(password="pw")

        state.set_entry(Date(2024, 1, 1), "hello")
        save_journal(config, state)
        assert open_journal(config, "pw").entries == {Date(2024, 1, 1): "hello"}

    def test_create_requires_password(self, config):
        with pytest.raises(ValueError):
            create_journal(config, "")
        assert not journal_exists(config)

    def test_open_wrong_password(self, config):
        create_journal(config, "pw")
        with pytest.raises(IncorrectPassword):
            open_journal(config, "nope")

    def test_open_missing(self, config):
        with pytest.raises(NotAccessible):
            open_journal(config, "pw")

    def test_list_entries_newest_first(self):
        state = State(entries={
            Date(2023, 1, 1): "old",
            Date(2024, 1, 1): "\n  new day\nsecond line",
        })
        assert list_entries(state) == [(Date(2024, 1, 1), "new day"), (Date(2023, 1, 1), "old")]

    def test_preview_truncates(self):
        assert preview("x" * 100, limit=10) == "x" * 9 + "…"
        assert preview("") == ""

    def test_change_password(self):
        state = State(password="old")
        change_password(state, "old", "new")
        assert state.password == "new"

    def test_change_password_wrong_current(self):
        state = State(password="old")
        with pytest.raises(IncorrectPassword):
            change_password(state, "guess", "new")
        assert state.password == "old"

    def test_change_password_non_ascii(self):
        state = State(password="pässwörd")
        with pytest.raises(IncorrectPassword):
            change_password(state, "passwort", "new")
        change_password(state, "pässwörd", "nëw")
        assert state.password == "nëw"

    def test_change_password_empty_new(self):
        state = State(password="old")
        with pytest.raises(ValueError):
            change_password(state, "old", "")
        assert state.password == "old"
