"""Tests for jrn.state: entry access and the load/save pipeline."""

import base64
import json
from datetime import date

import pytest

from jrn.crypto import Secure, ZeroSecurity
from jrn.date import Date
from jrn.errors import (
    FileError,
    IncorrectPassword,
    InvalidLength,
    LoadError,
    NotAccessible,
    ParseError,
    TamperedEntry,
)
from jrn.state import State

NEW_YEAR = Date(2024, 1, 1)


@pytest.fixture(scope="module")
def secure():
    return Secure()


@pytest.fixture
def zero():
    return ZeroSecurity()


@pytest.fixture
def path(tmp_path):
    return tmp_path / "jrn.json"


class TestEntries:
    def test_new_state_is_empty(self):
        state = State()
        assert state.password == ""
        assert state.entries == {}

    def test_absent_entry_is_none(self):
        assert State().get_entry(NEW_YEAR) is None

    def test_last_write_wins(self):
        state = State()
        state.set_entry(NEW_YEAR, "first")
        state.set_entry(Date(2024, 1, 1), "second")
        assert state.entries == {NEW_YEAR: "second"}

    def test_delete_entry(self):
        state = State(entries={NEW_YEAR: "x"})
        assert state.delete_entry(NEW_YEAR)
        assert not state.delete_entry(NEW_YEAR)
        assert state.entries == {}

    def test_today(self):
        state = State()
        state.set_today("hi", today=date(2024, 1, 1))
        assert state.get_entry(NEW_YEAR) == "hi"
        assert state.get_today(today=date(2024, 1, 1)) == "hi"
        assert state.get_today(today=date(2024, 1, 2)) is None

    def test_dates_sorted(self):
        state = State(entries={Date(2024, 5, 1): "b", Date(2023, 1, 1): "a"})
        assert state.dates() == [Date(2023, 1, 1), Date(2024, 5, 1)]

    def test_repr_hides_password(self):
        assert "hunter2" not in repr(State(password="hunter2"))


class TestLoadSave:
    def test_end_to_end(self, secure, path):
        State(password="abc", entries={NEW_YEAR: "hello"}).save(path, secure)

        state = State()
        state.load(path, "abc", secure)
        assert state.entries == {NEW_YEAR: "hello"}

        with pytest.raises(IncorrectPassword):
            state.load(path, "wrong", secure)

        retry = State()
        retry.load(path, "abc", secure)
        assert retry.entries == {NEW_YEAR: "hello"}
        assert retry.password == "abc"

    def test_file_contents_are_encrypted(self, secure, path):
        State(password="abc", entries={NEW_YEAR: "very secret words"}).save(path, secure)
        text = path.read_text()
        assert "very secret words" not in text
        assert json.loads(text)["password_hash"].startswith("$argon2")

    def test_open(self, zero, path):
        State(password="pw", entries={NEW_YEAR: "x"}).save(path, zero)
        assert State.open(path, "pw", zero) == State(password="pw", entries={NEW_YEAR: "x"})

    def test_missing_file(self, zero, path):
        with pytest.raises(NotAccessible):
            State().load(path, "pw", zero)

    def test_malformed_file(self, zero, path):
        path.write_text("not json")
        with pytest.raises(ParseError):
            State().load(path, "pw", zero)

    def test_deeply_nested_file(self, zero, path):
        path.write_text("[" * 200000 + "]" * 200000)
        with pytest.raises(ParseError):
            State().load(path, "pw", zero)

    def test_oversized_entry_date(self, zero, path):
        State(password="pw", entries={NEW_YEAR: "x"}).save(path, zero)
        doc = json.loads(path.read_text())
        doc["entries"][0]["date"] = "1" * 5000 + "-01-01"
        path.write_text(json.dumps(doc))

        with pytest.raises(ParseError):
            State().load(path, "pw", zero)

    def test_truncated_salt(self, zero, path):
        State(password="pw").save(path, zero)
        doc = json.loads(path.read_text())
        doc["kdf_salt"] = base64.b64encode(bytes(31)).decode()
        path.write_text(json.dumps(doc))

        with pytest.raises(InvalidLength):
            State().load(path, "pw", zero)

    def test_failed_load_leaves_state_and_file_untouched(self, secure, path):
        State(password="abc", entries={NEW_YEAR: "hello"}).save(path, secure)
        before = path.read_bytes()

        state = State(password="mine", entries={Date(2020, 2, 2): "keep"})
        for _ in range(2):
            with pytest.raises(IncorrectPassword):
                state.load(path, "wrong", secure)

        assert state == State(password="mine", entries={Date(2020, 2, 2): "keep"})
        assert path.read_bytes() == before

    def test_tampered_file(self, secure, path):
        State(password="abc", entries={NEW_YEAR: "hello"}).save(path, secure)
        doc = json.loads(path.read_text())
        digest = bytearray(base64.b64decode(doc["entries"][0]["digest"]))
        digest[0] ^= 0xFF
        doc["entries"][0]["digest"] = base64.b64encode(bytes(digest)).decode()
        path.write_text(json.dumps(doc))

        with pytest.raises(TamperedEntry):
            State().load(path, "abc", secure)

    def test_all_load_failures_are_load_errors(self, zero, path):
        with pytest.raises(LoadError):
            State().load(path, "pw", zero)

    def test_one_stored_entry_per_date(self, zero, path):
        state = State(password="pw", entries={NEW_YEAR: "draft"})
        state.save(path, zero)
        state.set_entry(NEW_YEAR, "final")
        state.save(path, zero)

        doc = json.loads(path.read_text())
        assert [e["date"] for e in doc["entries"]] == ["2024-01-01"]
        assert State.open(path, "pw", zero).get_entry(NEW_YEAR) == "final"

    def test_each_save_rekeys(self, secure, path):
        state = State(password="abc", entries={NEW_YEAR: "hello"})
        state.save(path, secure)
        first = json.loads(path.read_text())
        state.save(path, secure)
        second = json.loads(path.read_text())

        assert first["kdf_salt"] != second["kdf_salt"]
        assert first["password_hash"] != second["password_hash"]
        assert first["entries"][0]["nonce"] != second["entries"][0]["nonce"]

    def test_change_password_applies_on_save(self, zero, path):
        state = State(password="old", entries={NEW_YEAR: "x"})
        state.save(path, zero)

        state.change_password("new")
        assert State.open(path, "old", zero).entries == {NEW_YEAR: "x"}

        state.save(path, zero)
        with pytest.raises(IncorrectPassword):
            State.open(path, "old", zero)
        assert State.open(path, "new", zero).entries == {NEW_YEAR: "x"}

    def test_save_to_unwritable_path(self, zero, tmp_path):
        with pytest.raises(FileError):
            State(password="pw").save(tmp_path / "missing" / "jrn.json", zero)
