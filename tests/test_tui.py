from dataclasses import asdict

import pytest

from mob.tui import (
    AgentOutputTab,
    AgentsTab,
    Chooser,
    DaemonTab,
    Model,
    Sidebar,
    Styles,
    Tab,
    Toast,
    ToastQueue,
    clamp_height,
    run,
)


@pytest.mark.parametrize("height, expected", [(1, 3), (30, 24), (10, 10), (3, 3), (24, 24)])
def test_clamp_height(height, expected):
    assert clamp_height(height) == expected


def test_chooser_select_next():
    chooser = Chooser(["A", "B"])
    chooser.next()
    assert chooser.index == 1
    chooser.next()
    assert chooser.index == 0


def test_chooser_empty_stays_put():
    chooser = Chooser([])
    chooser.next()
    assert chooser.index == 0


def test_styles_palette():
    assert Styles().primary == "#fab283"


def test_styles_has_no_tab_label():
    assert asdict(Styles()) == {"primary": "#fab283"}


def test_component_views():
    assert Sidebar().view() == "Sidebar"
    assert DaemonTab().view() == "Daemon"
    assert AgentOutputTab().view() == "Agent Output"
    assert AgentsTab().view() == "Agents"


def test_toast_queue():
    queue = ToastQueue()
    queue.push(Toast(message="first"))
    queue.push(Toast(message="second"))
    assert len(queue) == 2
    assert queue.peek() == Toast(message="first")
    assert ToastQueue().peek() is None
    assert queue.pop().message == "first"
    assert len(queue) == 1
    assert queue.pop().message == "second"
    with pytest.raises(IndexError):
        queue.pop()


def test_model_initial_tab():
    model = Model()
    assert model.active_tab == Tab.CHAT
    assert model.input_rows == 3
    assert len(model.toasts) == 0


def test_model_update_returns_same_model():
    model = Model()
    assert model.update("key") is model


def test_view_includes_tabs():
    view = Model().view()
    for label in ["[Chat]", "[Daemon]", "[Agent Output]", "[Agents]"]:
        assert label in view
    assert view == "[Chat] [Daemon] [Agent Output] [Agents]"


def test_run_uses_start_program():
    started = []
    run(start_program=started.append)
    assert len(started) == 1
    assert started[0].active_tab == Tab.CHAT


def test_run_propagates_program_error():
    def failing(model):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        run(start_program=failing)


def test_run_default_prints_view(capsys):
    run()
    assert capsys.readouterr().out == "[Chat] [Daemon] [Agent Output] [Agents]\n"