import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pytest

from mob.patrol import AgentNotFoundError, AgentStatus, Patrol


def now():
    return datetime.now().astimezone()


@dataclass
class FakeAgent:
    id: str
    name: str = ""
    type: str = "soldati"
    started_at: datetime = field(default_factory=now)
    running: bool = False

    def is_running(self):
        return self.running


class FakeSpawner:
    def __init__(self, *agents):
        self.agents = {agent.id: agent for agent in agents}

    def list(self):
        return list(self.agents.values())

    def get(self, agent_id):
        return self.agents.get(agent_id)


def test_defaults():
    p = Patrol(FakeSpawner())
    assert p.interval == timedelta(minutes=2)
    assert p.stuck_timeout == timedelta(minutes=10)
    assert p.status() == []


def test_options_are_applied():
    stuck, dead = [], []
    p = Patrol(
        FakeSpawner(),
        interval=timedelta(seconds=30),
        stuck_timeout=timedelta(minutes=5),
        on_stuck=stuck.append,
        on_dead=dead.append,
    )
    assert p.interval == timedelta(seconds=30)
    assert p.stuck_timeout == timedelta(minutes=5)
    p.on_stuck(AgentStatus(agent_id="a"))
    p.on_dead(AgentStatus(agent_id="b"))
    assert [s.agent_id for s in stuck] == ["a"]
    assert [s.agent_id for s in dead] == ["b"]


def test_check_agent_without_process_is_dead():
    agent = FakeAgent(id="test-agent-1", name="vinnie")
    p = Patrol(FakeSpawner(agent))
    status = p.check("test-agent-1")
    assert status.agent_id == "test-agent-1"
    assert status.name == "vinnie"
    assert status.type == "soldati"
    assert status.status == "dead"
    assert status.message == "agent process is not running"


def test_check_running_agent_is_healthy():
    agent = FakeAgent(id="a1", name="sal", running=True)
    p = Patrol(FakeSpawner(agent))
    status = p.check("a1")
    assert status.status == "healthy"
    assert status.message == ""


def test_check_not_found():
    p = Patrol(FakeSpawner())
    with pytest.raises(AgentNotFoundError):
        p.check("nonexistent")


def test_status_lists_all_agents():
    agents = [
        FakeAgent(id=name, name=name, started_at=now() - timedelta(hours=i))
        for i, name in enumerate(["agent1", "agent2", "agent3"])
    ]
    p = Patrol(FakeSpawner(*agents))
    p.check_all()
    assert sorted(s.agent_id for s in p.status()) == ["agent1", "agent2", "agent3"]


def test_status_returns_copies():
    p = Patrol(FakeSpawner(FakeAgent(id="a")))
    p.check_all()
    p.status()[0].status = "changed"
    assert p.status()[0].status == "dead"


def test_detects_stuck():
    agent = FakeAgent(id="stuck-agent", name="stuck", started_at=now() - timedelta(minutes=30))
    stuck = []
    p = Patrol(
        FakeSpawner(agent),
        stuck_timeout=timedelta(minutes=5),
        running_checker=lambda agent_id: agent_id == "stuck-agent",
        on_stuck=stuck.append,
    )
    p.update_bead_time("stuck-agent", now() - timedelta(minutes=15))
    p.check_all()
    assert len(stuck) == 1
    assert stuck[0].agent_id == "stuck-agent"
    assert stuck[0].status == "stuck"
    assert stuck[0].message == "no bead updates for 15m0s"

    p.check_all()
    assert len(stuck) == 1


def test_stuck_message_with_hours():
    agent = FakeAgent(id="a", running=True)
    p = Patrol(FakeSpawner(agent))
    p.update_bead_time("a", now() - timedelta(minutes=90))
    status = p.check("a")
    assert status.status == "stuck"
    assert status.message == "no bead updates for 1h30m0s"


def test_stuck_agent_recovers_after_bead_update():
    agent = FakeAgent(id="a", running=True, started_at=now() - timedelta(hours=1))
    p = Patrol(FakeSpawner(agent))
    assert p.check("a").status == "stuck"
    p.update_bead_time("a", now())
    status = p.check("a")
    assert status.status == "healthy"
    assert status.message == ""


def test_detects_dead():
    agent = FakeAgent(id="dead-agent", name="dead", started_at=now() - timedelta(minutes=10))
    dead = []
    p = Patrol(FakeSpawner(agent), on_dead=dead.append)
    p.check_all()
    assert [s.agent_id for s in dead] == ["dead-agent"]
    assert dead[0].status == "dead"
    p.check_all()
    assert len(dead) == 1


def test_start_stops_on_event():
    p = Patrol(FakeSpawner(FakeAgent(id="a")), interval=timedelta(milliseconds=10))
    stop = threading.Event()
    worker = threading.Thread(target=p.start, args=(stop,))
    worker.start()
    threading.Event().wait(0.05)
    stop.set()
    worker.join(timeout=1)
    assert not worker.is_alive()
    assert [s.agent_id for s in p.status()] == ["a"]


def test_check_all_updates_last_seen():
    p = Patrol(FakeSpawner(FakeAgent(id="test-agent", name="test")))
    before = now()
    p.check_all()
    after = now()
    (status,) = p.status()
    assert before <= status.last_seen <= after


def test_update_bead_time_creates_status():
    p = Patrol(FakeSpawner(FakeAgent(id="test-agent")))
    bead_time = now()
    p.update_bead_time("test-agent", bead_time)
    (status,) = p.status()
    assert status.agent_id == "test-agent"
    assert status.last_bead_update == bead_time
    assert status.status == "healthy"