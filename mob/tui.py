"""State of the terminal interface: tabs, toasts, choosers and the top model."""

from __future__ import annotations

import sys
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

MIN_INPUT_ROWS = 3
MAX_INPUT_ROWS = 24


class Tab(IntEnum):
    CHAT = 0
    DAEMON = 1
    AGENT_OUTPUT = 2
    AGENTS = 3

    @property
    def label(self) -> str:
        return _TAB_LABELS[self]


_TAB_LABELS = {
    Tab.CHAT: "Chat",
    Tab.DAEMON: "Daemon",
    Tab.AGENT_OUTPUT: "Agent Output",
    Tab.AGENTS: "Agents",
}


@dataclass
class Chooser:
    """Cycles through a list of options."""

    options: list[str] = field(default_factory=list)
    index: int = 0

    def next(self) -> None:
        if self.options:
            self.index = (self.index + 1) % len(self.options)


def clamp_height(height: int) -> int:
    """Keep an input height between 3 and 24 rows."""
    return max(MIN_INPUT_ROWS, min(MAX_INPUT_ROWS, height))


@dataclass(frozen=True)
class Sidebar:
    def view(self) -> str:
        return "Sidebar"


@dataclass(frozen=True)
class Styles:
    primary: str = "#fab283"


@dataclass(frozen=True)
class AgentOutputTab:
    def view(self) -> str:
        return "Agent Output"


@dataclass(frozen=True)
class AgentsTab:
    def view(self) -> str:
        return "Agents"


@dataclass(frozen=True)
class DaemonTab:
    def view(self) -> str:
        return "Daemon"


@dataclass(frozen=True)
class Toast:
    message: str = ""


class ToastQueue:
    """First-in, first-out queue of toasts."""

    def __init__(self) -> None:
        self._items: deque[Toast] = deque()

    def push(self, toast: Toast) -> None:
        self._items.append(toast)

    def peek(self) -> Toast | None:
        """Return the oldest toast without removing it, or None when empty."""
        return self._items[0] if self._items else None

    def pop(self) -> Toast:
        """Remove and return the oldest toast; raise IndexError when empty."""
        if not self._items:
            raise IndexError("pop from an empty toast queue")
        return self._items.popleft()

    def __len__(self) -> int:
        return len(self._items)


@dataclass
class Model:
    """Top-level interface state."""

    active_tab: Tab = Tab.CHAT
    input_rows: int = field(default_factory=lambda: clamp_height(MIN_INPUT_ROWS))
    sidebar: Sidebar = field(default_factory=Sidebar)
    toasts: ToastQueue = field(default_factory=ToastQueue)
    daemon_tab: DaemonTab = field(default_factory=DaemonTab)
    agent_output_tab: AgentOutputTab = field(default_factory=AgentOutputTab)
    agents_tab: AgentsTab = field(default_factory=AgentsTab)

    def update(self, msg: Any) -> Model:
        """Handle a message; no message changes the state yet."""
        return self

    def view(self) -> str:
        return " ".join(f"[{tab.label}]" for tab in Tab)


def _print_program(model: Model) -> None:
    sys.stdout.write(model.view() + "\n")


def run(start_program: Callable[[Model], Any] | None = None) -> None:
    """Start a program on a fresh model; by default the view is printed."""
    (start_program or _print_program)(Model())