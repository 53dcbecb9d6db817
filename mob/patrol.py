"""Background health monitoring that spots stuck and dead agents."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any

_HEALTHY = "healthy"
_STUCK = "stuck"
_DEAD = "dead"

_DEAD_MESSAGE = "agent process is not running"
_NEVER = datetime.min.replace(tzinfo=timezone.utc)


class AgentNotFoundError(LookupError):
    """Raised when the spawner does not know the requested agent."""


def _now() -> datetime:
    return datetime.now().astimezone()


def _aware(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.astimezone()


def _format_duration(delta: timedelta) -> str:
    """Round to whole seconds and render like ``1h30m0s``, ``15m0s`` or ``45s``."""
    micros = delta // timedelta(microseconds=1)
    sign = "-" if micros < 0 else ""
    seconds = (abs(micros) + 500_000) // 1_000_000
    if seconds == 0:
        return "0s"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


@dataclass
class AgentStatus:
    """The health of one agent as last seen by the patrol."""

    agent_id: str
    name: str = ""
    type: Any = ""
    status: str = _HEALTHY
    last_seen: datetime | None = None
    last_bead_update: datetime | None = None
    message: str = ""


class Patrol:
    """Checks every agent a spawner knows about and reports changes in health.

    The spawner needs ``list()`` returning agents and ``get(agent_id)`` returning
    an agent or None. Agents carry ``id``, ``name``, ``type``, ``started_at`` and
    ``is_running()``.
    """

    def __init__(
        self,
        spawner: Any,
        *,
        interval: timedelta = timedelta(minutes=2),
        stuck_timeout: timedelta = timedelta(minutes=10),
        on_stuck: Callable[[AgentStatus], None] | None = None,
        on_dead: Callable[[AgentStatus], None] | None = None,
        running_checker: Callable[[str], bool] | None = None,
    ) -> None:
        self.spawner = spawner
        self.interval = interval
        self.stuck_timeout = stuck_timeout
        self.on_stuck = on_stuck
        self.on_dead = on_dead
        self.running_checker = running_checker or self._agent_is_running
        self._lock = threading.RLock()
        self._statuses: dict[str, AgentStatus] = {}

    def _agent_is_running(self, agent_id: str) -> bool:
        agent = self.spawner.get(agent_id)
        return agent is not None and agent.is_running()

    def _status_for(self, agent: Any, now: datetime) -> AgentStatus:
        status = self._statuses.get(agent.id)
        if status is None:
            status = AgentStatus(
                agent_id=agent.id,
                name=agent.name,
                type=agent.type,
                status=_HEALTHY,
                last_seen=now,
                last_bead_update=_aware(agent.started_at),
            )
            self._statuses[agent.id] = status
        return status

    def _assess(self, status: AgentStatus, running: bool, now: datetime) -> None:
        status.last_seen = now
        if not running:
            status.status = _DEAD
            status.message = _DEAD_MESSAGE
            return
        elapsed = now - (status.last_bead_update or _NEVER)
        if elapsed > self.stuck_timeout:
            status.status = _STUCK
            status.message = "no bead updates for " + _format_duration(elapsed)
        else:
            status.status = _HEALTHY
            status.message = ""

    def start(self, stop_event: threading.Event) -> None:
        """Check at once, then every interval until ``stop_event`` is set."""
        self.check_all()
        while not stop_event.wait(self.interval.total_seconds()):
            self.check_all()

    def check_all(self) -> None:
        """Check every agent, calling the callbacks when one turns stuck or dead."""
        now = _now()
        for agent in self.spawner.list():
            with self._lock:
                status = self._status_for(agent, now)
                previous = status.status
                self._assess(status, self.running_checker(agent.id), now)
                snapshot = replace(status)

            if snapshot.status == previous:
                continue
            if snapshot.status == _DEAD and self.on_dead is not None:
                self.on_dead(snapshot)
            elif snapshot.status == _STUCK and self.on_stuck is not None:
                self.on_stuck(snapshot)

    def check(self, agent_id: str) -> AgentStatus:
        """Check one agent and return its status; callbacks are not called."""
        agent = self.spawner.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(f"agent not found: {agent_id}")
        with self._lock:
            now = _now()
            status = self._status_for(agent, now)
            self._assess(status, self.running_checker(agent_id), now)
            return replace(status)

    def status(self) -> list[AgentStatus]:
        """Return copies of every known agent status."""
        with self._lock:
            return [replace(status) for status in self._statuses.values()]

    def update_bead_time(self, agent_id: str, when: datetime) -> None:
        """Record that an agent produced a bead at ``when``."""
        when = _aware(when)
        with self._lock:
            status = self._statuses.get(agent_id)
            if status is None:
                self._statuses[agent_id] = AgentStatus(
                    agent_id=agent_id,
                    status=_HEALTHY,
                    last_seen=when,
                    last_bead_update=when,
                )
            else:
                status.last_bead_update = when