"""Data records shared by the stores: beads, reports, soldati and turfs."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

_FRACTION = re.compile(r"\.(\d+)")


def _parse_time(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp; nanosecond fractions are cut to microseconds."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), str(value), count=1)
    return datetime.fromisoformat(text)


def _format_time(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def _without_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


class BeadStatus(StrEnum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class BeadType(StrEnum):
    TASK = "task"
    BUG = "bug"
    CHORE = "chore"
    REVIEW = "review"


class BeadEventType(StrEnum):
    CREATED = "created"
    COMMENT = "comment"
    STATUS_CHANGE = "status_change"


@dataclass
class BeadEvent:
    """One entry in a bead's history."""

    type: BeadEventType
    actor: str = ""
    comment: str = ""
    from_status: str = ""
    to_status: str = ""
    id: str = ""
    timestamp: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {
                "id": self.id,
                "type": str(self.type),
                "actor": self.actor,
                "comment": self.comment,
                "from": self.from_status,
                "to": self.to_status,
                "timestamp": _format_time(self.timestamp),
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BeadEvent:
        return cls(
            type=BeadEventType(data["type"]),
            actor=data.get("actor", ""),
            comment=data.get("comment", ""),
            from_status=data.get("from", ""),
            to_status=data.get("to", ""),
            id=data.get("id", ""),
            timestamp=_parse_time(data.get("timestamp")),
        )


@dataclass
class Bead:
    """A unit of work tracked by the bead store."""

    title: str = ""
    description: str = ""
    status: BeadStatus = BeadStatus.OPEN
    priority: int = 0
    type: BeadType = BeadType.TASK
    turf: str = ""
    assignee: str = ""
    blocks: list[str] = field(default_factory=list)
    id: str = ""
    branch: str = ""
    created_by: str = ""
    discovered_from: str = ""
    history: list[BeadEvent] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {
                "id": self.id,
                "title": self.title,
                "description": self.description,
                "status": str(self.status),
                "priority": self.priority,
                "type": str(self.type),
                "turf": self.turf,
                "assignee": self.assignee,
                "blocks": list(self.blocks),
                "branch": self.branch,
                "created_by": self.created_by,
                "discovered_from": self.discovered_from,
                "history": [event.to_dict() for event in self.history],
                "created_at": _format_time(self.created_at),
                "updated_at": _format_time(self.updated_at),
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Bead:
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=BeadStatus(data.get("status", BeadStatus.OPEN)),
            priority=int(data.get("priority", 0)),
            type=BeadType(data.get("type", BeadType.TASK)),
            turf=data.get("turf", ""),
            assignee=data.get("assignee", ""),
            blocks=list(data.get("blocks") or []),
            id=data.get("id", ""),
            branch=data.get("branch", ""),
            created_by=data.get("created_by", ""),
            discovered_from=data.get("discovered_from", ""),
            history=[BeadEvent.from_dict(item) for item in data.get("history") or []],
            created_at=_parse_time(data.get("created_at")),
            updated_at=_parse_time(data.get("updated_at")),
        )


@dataclass
class AgentReport:
    """A report filed by an agent about its work."""

    agent_id: str = ""
    agent_name: str = ""
    bead_id: str = ""
    type: str = ""
    message: str = ""
    id: str = ""
    timestamp: datetime | None = None
    handled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {
                "id": self.id,
                "agent_id": self.agent_id,
                "agent_name": self.agent_name,
                "bead_id": self.bead_id,
                "type": self.type,
                "message": self.message,
                "timestamp": _format_time(self.timestamp),
                "handled": self.handled,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentReport:
        return cls(
            agent_id=data.get("agent_id", ""),
            agent_name=data.get("agent_name", ""),
            bead_id=data.get("bead_id", ""),
            type=data.get("type", ""),
            message=data.get("message", ""),
            id=data.get("id", ""),
            timestamp=_parse_time(data.get("timestamp")),
            handled=bool(data.get("handled", False)),
        )


@dataclass
class SoldatiStats:
    tasks_completed: int = 0
    tasks_failed: int = 0
    success_rate: float = 0.0


@dataclass
class Soldati:
    """A persistent named worker."""

    name: str
    created_at: datetime | None = None
    last_active: datetime | None = None
    stats: SoldatiStats = field(default_factory=SoldatiStats)
    turfs: list[str] = field(default_factory=list)
    primary_turf: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return a TOML-ready mapping; timestamps stay datetime objects."""
        return _without_none(
            {
                "name": self.name,
                "created_at": self.created_at,
                "last_active": self.last_active,
                "turfs": list(self.turfs),
                "primary_turf": self.primary_turf,
                "stats": asdict(self.stats),
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Soldati:
        stats = data.get("stats") or {}
        return cls(
            name=data.get("name", ""),
            created_at=_parse_time(data.get("created_at")),
            last_active=_parse_time(data.get("last_active")),
            stats=SoldatiStats(
                tasks_completed=int(stats.get("tasks_completed", 0)),
                tasks_failed=int(stats.get("tasks_failed", 0)),
                success_rate=float(stats.get("success_rate", 0.0)),
            ),
            turfs=list(data.get("turfs") or []),
            primary_turf=data.get("primary_turf", ""),
        )


@dataclass
class Turf:
    """A registered project directory."""

    name: str
    path: str
    main_branch: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "main_branch": self.main_branch}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Turf:
        return cls(
            name=data.get("name", ""),
            path=data.get("path", ""),
            main_branch=data.get("main_branch", ""),
        )