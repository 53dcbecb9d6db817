"""Interactive chat session with the Underboss, and the Underboss character prompt."""

from __future__ import annotations

import threading
from typing import Any, TextIO

_TOOLS = (
    ("spawn_soldati", "start a persistent, named worker"),
    ("spawn_associate", "start a temporary worker"),
    ("list_agents", "list the crew"),
    ("get_agent_status", "inspect one agent"),
    ("kill_agent", "remove an agent"),
    ("nudge_agent", "wake an agent that seems stuck"),
    ("assign_bead", "hand a bead to an agent"),
    ("get_bead", "see whether a bead is finished"),
)


def _build_system_prompt() -> str:
    sections = [
        "You are the Underboss of a mob-themed system that orchestrates coding agents.",
        "# Style\nKeep answers short and to the point. A touch of mob slang is fine; "
        "getting the job done matters more than the act.",
        "# Crew\nSoldati are named, long-lived workers for larger jobs. "
        "Associates are throwaway workers for small jobs.",
        "# Rules\n"
        "- Workers never report back to you; they only finish tasks and close beads.\n"
        "- Learn about progress by checking bead status yourself.\n"
        "- Research, exploration and planning are your job: use your own tools for them.\n"
        "- Send workers only on jobs whose result is a change to code or files.",
        "# Working a request\n"
        "- Explore the codebase and break the work into beads.\n"
        "- Spawn workers and assign them beads to implement.\n"
        "- Watch the beads until they are closed.",
        "# Tools\n" + "\n".join(f"- {name}: {purpose}" for name, purpose in _TOOLS),
    ]
    return "\n\n".join(sections) + "\n"


DEFAULT_SYSTEM_PROMPT = _build_system_prompt()

_EXIT_COMMANDS = frozenset({"exit", "quit", "q"})

_RULE = "=" * 46

_WELCOME = (
    "",
    _RULE,
    "  Welcome to the Mob - Chat with the Underboss",
    _RULE,
    "",
    "Type your message and press Enter to send.",
    "Type 'exit', 'quit', or 'q' to leave.",
    "Press Ctrl+C to exit immediately.",
)

_GOODBYE = ("", "The Underboss says goodbye.", "")


class UnderbossNotRunningError(RuntimeError):
    """Raised when an operation needs a running Underboss."""

    def __init__(self, message: str = "underboss is not running") -> None:
        super().__init__(message)


def is_exit_command(text: str) -> bool:
    """Return True if ``text`` asks to leave the session."""
    return text.lower() in _EXIT_COMMANDS


class Session:
    """A line-based chat loop between the user and the Underboss.

    The underboss needs ``is_running()`` and an ``agent`` attribute; the agent's
    ``chat(message)`` returns a response whose ``text`` is shown to the user.
    """

    def __init__(self, underboss: Any, input: TextIO, output: TextIO) -> None:
        self.underboss = underboss
        self.input = input
        self.output = output

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Read messages until exit or end of input.

        Raises InterruptedError when ``stop_event`` is set before a prompt.
        """
        self._write_lines(_WELCOME)

        while True:
            if stop_event is not None and stop_event.is_set():
                self._write_lines(_GOODBYE)
                raise InterruptedError("session cancelled")

            self.output.write("\n> ")

            line = self.input.readline()
            if not line:
                self._write_lines(_GOODBYE)
                return

            message = line.strip()
            if not message:
                continue

            if is_exit_command(message):
                self._write_lines(_GOODBYE)
                return

            try:
                self._send(message)
            except Exception as exc:  # reported to the user; the loop carries on
                self.output.write(f"Error: {exc}\n")

    def _send(self, message: str) -> None:
        if not self.underboss.is_running():
            raise UnderbossNotRunningError()
        agent = self.underboss.agent
        if agent is None:
            raise UnderbossNotRunningError()
        try:
            response = agent.chat(message)
        except Exception as exc:
            raise RuntimeError(f"failed to send message: {exc}") from exc
        self.output.write(f"\n{response.text}\n")

    def _write_lines(self, lines: tuple[str, ...]) -> None:
        self.output.write("".join(f"{line}\n" for line in lines))