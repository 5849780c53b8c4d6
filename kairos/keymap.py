"""Key handling for the dashboard.

Keys are mapped to events by mode, highest priority first: confirmation
prompt, search entry, help overlay, focus view, execution list. Nothing here
touches state; the reducer decides what an event means.
"""

from __future__ import annotations

from . import events as ev
from .confirm import RESTART, TERMINATE, Phase
from .query import SearchField

QUIT_KEYS = {"ctrl+c"}

_NAVIGATION = {
    "j": ev.MoveCursor(1),
    "down": ev.MoveCursor(1),
    "k": ev.MoveCursor(-1),
    "up": ev.MoveCursor(-1),
}

_SHARED = {
    "o": ev.OpenInBrowser(),
    "t": ev.RequestAction(TERMINATE),
    "R": ev.RequestAction(RESTART),
    "r": ev.Refresh(),
    "?": ev.ToggleHelp(),
    "q": ev.Quit(),
}

LIST_KEYS = {
    **_NAVIGATION,
    **_SHARED,
    "space": ev.ToggleSelection(),
    "enter": ev.FocusSelected(),
    "w": ev.StartSearch(SearchField.WORKFLOW_TYPE),
    "i": ev.StartSearch(SearchField.WORKFLOW_ID),
    "s": ev.StartSearch(SearchField.EXECUTION_STATUS),
    "c": ev.ClearFilters(),
    "n": ev.NextPage(),
    "right": ev.NextPage(),
    "p": ev.PrevPage(),
    "left": ev.PrevPage(),
    "P": ev.ToggleParentsOnly(),
}

FOCUS_KEYS = {
    **_NAVIGATION,
    **_SHARED,
    "f": ev.DrillIntoChild(),
    "escape": ev.Back(),
}

# Shown in the help overlay, in this order
HELP = [
    ("j / k", "Move down / up"),
    ("space", "Select workflow"),
    ("enter", "Show workflow history"),
    ("f", "Open child workflow"),
    ("esc", "Back"),
    ("w / i / s", "Search WorkflowType / WorkflowId / status"),
    ("c", "Clear search filters"),
    ("P", "Toggle parent workflows only"),
    ("n / p", "Next / previous page"),
    ("r", "Refresh"),
    ("o", "Open in browser"),
    ("t", "Terminate"),
    ("R", "Restart"),
    ("?", "Toggle help"),
    ("q", "Quit"),
]


def _name(key: str, character: str | None) -> str:
    """Printable keys by their character, so shifted letters stay distinct."""
    if character and character.isprintable() and not character.isspace():
        return character
    return key


def translate(state, key: str, character: str | None = None):
    """Map a key press to an event, or None if the key does nothing here."""
    if key in QUIT_KEYS:
        return ev.Quit()
    name = _name(key, character)

    if state.confirmation.phase is Phase.AWAITING_CONFIRMATION:
        if name in ("y", "Y"):
            return ev.Confirm(True)
        if name in ("n", "N", "escape"):
            return ev.Confirm(False)
        return None

    search = state.search
    if search.active:
        if key == "enter":
            return ev.SubmitSearch()
        if key == "escape":
            return ev.CancelSearch()
        if key == "tab":
            return ev.AcceptSuggestion()
        if key == "backspace":
            return ev.SearchTextChanged(search.text[:-1])
        if character and character.isprintable():
            return ev.SearchTextChanged(search.text + character)
        return None

    if state.show_help:
        if name in ("?", "escape"):
            return ev.ToggleHelp()
        if name == "q":
            return ev.Quit()
        return None

    if state.focus or state.focus_pending:
        return FOCUS_KEYS.get(name)
    return LIST_KEYS.get(name)
