"""Persistent agent registry shared between processes through a locked JSON file."""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from filelock import FileLock

from .models import _format_time, _parse_time

_TERMINAL_STATUSES = frozenset({"completed", "failed", "timed_out"})


class AgentNotFoundError(LookupError):
    """Raised when an agent is not in the registry."""


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class AgentRecord:
    """A tracked agent."""

    id: str
    type: str = ""
    name: str = ""
    turf: str = ""
    session_id: str = ""
    status: str = ""
    task: str = ""
    bead_id: str = ""
    started_at: datetime | None = None
    last_ping: datetime | None = None
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "turf": self.turf,
        }
        if self.session_id:
            data["session_id"] = self.session_id
        data["status"] = self.status
        if self.task:
            data["task"] = self.task
        if self.bead_id:
            data["bead_id"] = self.bead_id
        data["started_at"] = _format_time(self.started_at)
        data["last_ping"] = _format_time(self.last_ping)
        if self.completed_at is not None:
            data["completed_at"] = _format_time(self.completed_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentRecord:
        return cls(
            id=data.get("id", ""),
            type=data.get("type", ""),
            name=data.get("name", ""),
            turf=data.get("turf", ""),
            session_id=data.get("session_id", ""),
            status=data.get("status", ""),
            task=data.get("task", ""),
            bead_id=data.get("bead_id", ""),
            started_at=_parse_time(data.get("started_at")),
            last_ping=_parse_time(data.get("last_ping")),
            completed_at=_parse_time(data.get("completed_at")),
        )


def default_path(mob_dir: str | os.PathLike[str]) -> Path:
    """Return the registry file location for a mob directory."""
    return Path(mob_dir) / ".mob" / "agents.json"


class Registry:
    """Agent records stored in one JSON file, guarded by a thread and a file lock."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with FileLock(str(self.path) + ".lock"):
                yield

    def _load(self) -> dict[str, AgentRecord]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        if not content:
            return {}
        agents = json.loads(content).get("agents") or {}
        return {agent_id: AgentRecord.from_dict(item) for agent_id, item in agents.items()}

    def _save(self, agents: dict[str, AgentRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"agents": {agent_id: rec.to_dict() for agent_id, rec in agents.items()}}
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    @staticmethod
    def _require(agents: dict[str, AgentRecord], agent_id: str) -> AgentRecord:
        try:
            return agents[agent_id]
        except KeyError:
            raise AgentNotFoundError(f"agent not found in registry: {agent_id}") from None

    def register(self, agent: AgentRecord) -> None:
        """Add or replace an agent, stamping its last ping."""
        with self._locked():
            agents = self._load()
            agent.last_ping = _now()
            agents[agent.id] = agent
            self._save(agents)

    def unregister(self, agent_id: str) -> None:
        with self._locked():
            agents = self._load()
            self._require(agents, agent_id)
            del agents[agent_id]
            self._save(agents)

    def get(self, agent_id: str) -> AgentRecord:
        with self._locked():
            return self._require(self._load(), agent_id)

    def get_by_name(self, name: str) -> AgentRecord:
        with self._locked():
            for record in self._load().values():
                if record.name == name:
                    return record
        raise AgentNotFoundError(f"agent not found in registry: {name}")

    def list(self) -> list[AgentRecord]:
        with self._locked():
            return [*self._load().values()]

    def list_by_type(self, agent_type: str) -> list[AgentRecord]:
        with self._locked():
            return [rec for rec in self._load().values() if rec.type == agent_type]

    def _modify(self, agent_id: str, change) -> None:
        with self._locked():
            agents = self._load()
            record = self._require(agents, agent_id)
            change(record)
            record.last_ping = _now()
            self._save(agents)

    def update_status(self, agent_id: str, status: str) -> None:
        """Set the status; the first terminal status also records completion time."""

        def change(record: AgentRecord) -> None:
            record.status = status
            if status in _TERMINAL_STATUSES and record.completed_at is None:
                record.completed_at = _now()

        self._modify(agent_id, change)

    def update_task(self, agent_id: str, task: str) -> None:
        def change(record: AgentRecord) -> None:
            record.task = task

        self._modify(agent_id, change)

    def ping(self, agent_id: str) -> None:
        self._modify(agent_id, lambda record: None)

    def clear(self) -> None:
        with self._locked():
            self._save({})