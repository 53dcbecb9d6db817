import pytest

from mob.models import AgentReport
from mob.report_store import ReportFilter, ReportNotFoundError, ReportStore


@pytest.fixture
def store(tmp_path):
    return ReportStore(tmp_path / "reports")


@pytest.fixture
def populated(store):
    created = [
        store.create(AgentReport(agent_id="a1", agent_name="vinnie", bead_id="bd-1", type="done")),
        store.create(AgentReport(agent_id="a1", agent_name="vinnie", bead_id="bd-2", type="blocked")),
        store.create(AgentReport(agent_id="a2", agent_name="sal", bead_id="bd-1", type="done")),
    ]
    return store, created


def test_create_assigns_id_and_resets_handled(store):
    report = store.create(AgentReport(agent_id="a1", message="finished", handled=True))
    assert report.id.startswith("rp-")
    assert report.handled is False
    assert report.timestamp is not None
    stored = store.get(report.id)
    assert stored.message == "finished"
    assert stored.handled is False


def test_get_unknown(store):
    with pytest.raises(ReportNotFoundError):
        store.get("rp-none")


def test_list_without_filter(populated):
    store, created = populated
    assert [r.id for r in store.list()] == [r.id for r in created]


def test_list_filters(populated):
    store, created = populated
    assert [r.id for r in store.list(ReportFilter(agent_id="a1"))] == [created[0].id, created[1].id]
    assert [r.id for r in store.list(ReportFilter(agent_name="sal"))] == [created[2].id]
    assert [r.id for r in store.list(ReportFilter(bead_id="bd-1"))] == [created[0].id, created[2].id]
    assert [r.id for r in store.list(ReportFilter(type="blocked"))] == [created[1].id]
    assert store.list(ReportFilter(agent_id="a2", type="blocked")) == []


def test_mark_handled_and_handled_filter(populated):
    store, created = populated
    marked = store.mark_handled(created[1].id)
    assert marked.handled is True
    assert store.get(created[1].id).handled is True
    assert [r.id for r in store.list(ReportFilter(handled=True))] == [created[1].id]
    assert [r.id for r in store.list(ReportFilter(handled=False))] == [created[0].id, created[2].id]


def test_mark_handled_unknown(store):
    with pytest.raises(ReportNotFoundError):
        store.mark_handled("rp-none")


def test_malformed_lines_are_skipped(store):
    report = store.create(AgentReport(agent_id="a1"))
    with store.open_file.open("a", encoding="utf-8") as handle:
        handle.write("{broken\n")
    assert [r.id for r in store.list()] == [report.id]


def test_empty_store(store):
    assert store.list() == []