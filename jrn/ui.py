# -*- coding: utf-8 -*-
"""Textual UI for jrn.

This file contains ONLY the UI: screens, modals, and the App wrapper. All
journal work goes through :mod:`jrn.logic`. The app holds the resolved
:class:`~jrn.logic.JournalConfig` and, once unlocked, the decrypted State.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen, Screen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Static,
    TextArea,
)

from jrn.date import Date
from jrn.errors import DateParseError, IncorrectPassword, JrnError
from jrn.logic import (
    JournalConfig,
    change_password,
    create_journal,
    journal_exists,
    list_entries,
    open_journal,
    resolve_password,
    save_journal,
)
from jrn.state import State

THEME_CSS_PATH = str(Path(__file__).with_name("theme.css"))


# ---------------------------------------------------------------------------
# Modals
# ---------------------------------------------------------------------------

class EditEntryModal(ModalScreen[bool]):
    """Edit one day's entry. Saving empty text removes the entry."""

    AUTO_DISMISS = False
    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, date: Date) -> None:
        super().__init__()
        self.date = date

    def compose(self) -> ComposeResult:
        current = self.app.journal.get_entry(self.date) or ""
        yield Container(
            Static(str(self.date), classes="title"),
            TextArea(current, id="ebody"),
            Horizontal(
                Button("Save", id="save", classes="-primary"),
                Button("Cancel", id="cancel"),
            ),
            id="modal-card",
        )

    def action_cancel(self) -> None:
        self.dismiss(False)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "save":
            self.save_entry(self.query_one("#ebody", TextArea).text)
        elif bid == "cancel":
            self.dismiss(False)

    def save_entry(self, text: str) -> bool:
        state: State = self.app.journal
        previous = state.get_entry(self.date)
        if text.strip():
            state.set_entry(self.date, text)
        else:
            state.delete_entry(self.date)
        try:
            save_journal(self.app.journal_config, state)
        except JrnError as exc:
            if previous is None:
                state.delete_entry(self.date)
            else:
                state.set_entry(self.date, previous)
            self.app.notify(str(exc), severity="error")
            return False
        self.app.notify(f"Saved {self.date}")
        self.dismiss(True)
        return True


class ChangePasswordModal(ModalScreen[bool]):
    """Change the journal password and re-encrypt the file."""

    AUTO_DISMISS = False
    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def compose(self) -> ComposeResult:
        yield Container(
            Static("CHANGE PASSWORD", classes="title"),
            Input(placeholder="current password", password=True, id="p0"),
            Input(placeholder="new password", password=True, id="p1"),
            Input(placeholder="confirm new", password=True, id="p2"),
            Horizontal(Button("Save", id="save", classes="-primary"), Button("Close", id="close")),
            id="modal-card",
        )

    def action_cancel(self) -> None:
        self.dismiss(False)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "save":
            self.submit(
                self.query_one("#p0", Input).value,
                self.query_one("#p1", Input).value,
                self.query_one("#p2", Input).value,
            )
        elif bid == "close":
            self.dismiss(False)

    def submit(self, current: str, new: str, confirm: str) -> bool:
        if new != confirm:
            self.app.notify("New passwords do not match", severity="error")
            return False
        state: State = self.app.journal
        old = state.password
        try:
            change_password(state, current, new)
            save_journal(self.app.journal_config, state)
        except (JrnError, ValueError) as exc:
            state.change_password(old)
            self.app.notify(str(exc), severity="error")
            return False
        self.app.notify("Password updated.")
        self.dismiss(True)
        return True


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------

class UnlockScreen(Screen):
    """Password prompt. Creates the journal if the file does not exist yet.

    A wrong password only clears the input; the journal file is not touched.
    """

    BINDINGS = [Binding("escape", "app.quit", "Quit")]

    @property
    def app_config(self) -> JournalConfig:
        return self.app.journal_config

    def compose(self) -> ComposeResult:
        self.creating = not journal_exists(self.app_config)
        yield Header()
        title = "NEW JOURNAL" if self.creating else "UNLOCK"
        hint = f"{self.app_config.journal_path}"
        widgets = [
            Static(title, classes="title"),
            Static(hint, classes="hint"),
            Input(placeholder="password", password=True, id="password"),
        ]
        if self.creating:
            widgets.append(Input(placeholder="confirm", password=True, id="confirm"))
        widgets.append(Horizontal(Button("Unlock", id="unlock", classes="-primary"), Button("Exit", id="exit")))
        yield Container(*widgets, id="modal-card")
        yield Footer()

    async def on_mount(self) -> None:
        try:
            password = resolve_password(self.app_config)
        except JrnError as exc:
            self.app.notify(str(exc), severity="error")
            return
        if password is not None and not self.creating:
            await self.attempt_unlock(password)

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        await self._submit()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "unlock":
            await self._submit()
        elif bid == "exit":
            self.app.exit()

    async def _submit(self) -> None:
        password = self.query_one("#password", Input).value
        confirm = self.query_one("#confirm", Input).value if self.creating else None
        await self.attempt_unlock(password, confirm)

    async def attempt_unlock(self, password: str, confirm: Optional[str] = None) -> bool:
        """Open (or create) the journal; True once the home screen is shown."""
        try:
            if self.creating:
                if password != confirm:
                    self.app.notify("Passwords do not match", severity="error")
                    return False
                state = create_journal(self.app_config, password)
            else:
                state = open_journal(self.app_config, password)
        except IncorrectPassword:
            self.app.failed_attempts += 1
            self.query_one("#password", Input).value = ""
            self.app.notify("Incorrect password, try again.", severity="error")
            return False
        except (JrnError, ValueError) as exc:
            self.app.notify(str(exc), severity="error")
            return False

        self.app.journal = state
        self.app.switch_screen(JournalHomeScreen())
        return True


class JournalHomeScreen(Screen):
    """Entry list plus Today / Open date / Change password / Lock."""

    BINDINGS = [
        Binding("ctrl+t", "open_today", "Today"),
        Binding("escape", "lock", "Lock"),
    ]

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="modal-card"):
            yield Static("ENTRIES", classes="title")
            self.list_view = ListView(id="entries")
            yield self.list_view
            yield Horizontal(
                Input(placeholder="YYYY-MM-DD or today-N", id="date_in"),
                Button("Open", id="open_date"),
            )
            yield Horizontal(
                Button("Today", id="today", classes="-primary"),
                Button("Change Password", id="change_password"),
                Button("Lock", id="lock"),
            )
        yield Footer()

    async def on_mount(self) -> None:
        await self.refresh_list()

    async def refresh_list(self) -> None:
        await self.list_view.clear()
        entries = list_entries(self.app.journal)
        if not entries:
            await self.list_view.append(ListItem(Label("No entries yet.")))
            return
        for date, line in entries:
            item = ListItem(Label(f"{date} — {line}"))
            item.data = date
            await self.list_view.append(item)

    async def on_list_view_selected(self, message: ListView.Selected) -> None:
        date = getattr(message.item, "data", None)
        if date is not None:
            self.open_entry(date)

    def open_entry(self, date: Date) -> None:
        self.app.push_screen(EditEntryModal(date), callback=self._after_modal)

    async def _after_modal(self, changed: Optional[bool]) -> None:
        if changed:
            await self.refresh_list()

    def action_open_today(self) -> None:
        self.open_entry(Date.today())

    def action_lock(self) -> None:
        self.app.journal = None
        self.app.switch_screen(UnlockScreen())

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "date_in":
            self.open_date_text(event.value)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "today":
            self.action_open_today()
        elif bid == "open_date":
            self.open_date_text(self.query_one("#date_in", Input).value)
        elif bid == "change_password":
            self.app.push_screen(ChangePasswordModal())
        elif bid == "lock":
            self.action_lock()

    def open_date_text(self, text: str) -> bool:
        try:
            date = Date.parse(text)
        except DateParseError as exc:
            self.app.notify(f"Bad date: {exc}", severity="error")
            return False
        self.open_entry(date)
        return True


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

class JrnApp(App):
    """Textual App wrapper. Holds config and, once unlocked, the State."""

    TITLE = "jrn"
    CSS_PATH = THEME_CSS_PATH

    def __init__(self, config: JournalConfig) -> None:
        super().__init__()
        self.journal_config = config
        self.journal: Optional[State] = None
        self.failed_attempts = 0

    async def on_mount(self) -> None:
        await self.push_screen(UnlockScreen())
