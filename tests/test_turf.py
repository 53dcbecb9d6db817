import os

import pytest

from mob.turf import TurfError, TurfManager


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "my-project"
    path.mkdir()
    return path


@pytest.fixture
def manager(tmp_path):
    return TurfManager(tmp_path / "turfs.toml")


def test_add(manager, project_dir):
    manager.add(project_dir, "my-project", "main")
    turfs = manager.list()
    assert len(turfs) == 1
    assert turfs[0].name == "my-project"
    assert turfs[0].path == os.path.abspath(project_dir)


def test_remove(manager, project_dir):
    manager.add(project_dir, "my-project", "main")
    manager.remove("my-project")
    assert manager.list() == []


def test_get(manager, project_dir):
    manager.add(project_dir, "my-project", "main")
    turf = manager.get("my-project")
    assert turf.name == "my-project"
    assert turf.main_branch == "main"

    turf.main_branch = "develop"
    assert manager.get("my-project").main_branch == "develop"

    with pytest.raises(TurfError):
        manager.get("non-existent")


def test_add_duplicate_name(manager, tmp_path):
    first = tmp_path / "project1"
    second = tmp_path / "project2"
    first.mkdir()
    second.mkdir()
    manager.add(first, "my-project", "main")
    with pytest.raises(TurfError, match="already exists"):
        manager.add(second, "my-project", "main")


def test_add_duplicate_path(manager, project_dir):
    manager.add(project_dir, "one", "main")
    with pytest.raises(TurfError, match="already registered as turf: one"):
        manager.add(project_dir, "two", "main")


def test_add_non_existent_path(manager, tmp_path):
    with pytest.raises(TurfError, match="does not exist"):
        manager.add(tmp_path / "path" / "that" / "does" / "not" / "exist", "my-project", "main")


def test_add_file_path(manager, tmp_path):
    file_path = tmp_path / "file.txt"
    file_path.write_text("x")
    with pytest.raises(TurfError, match="not a directory"):
        manager.add(file_path, "file", "main")


def test_remove_non_existent(manager):
    with pytest.raises(TurfError, match="turf not found"):
        manager.remove("non-existent")


def test_list_returns_copy(manager, project_dir):
    manager.add(project_dir, "my-project", "main")
    turfs = manager.list()
    turfs[0].name = "modified-name"
    assert manager.list()[0].name == "my-project"


def test_persisted_between_managers(tmp_path, project_dir):
    turfs_file = tmp_path / "turfs.toml"
    TurfManager(turfs_file).add(project_dir, "my-project", "trunk")
    reloaded = TurfManager(turfs_file)
    turf = reloaded.get("my-project")
    assert turf.main_branch == "trunk"
    assert turf.path == os.path.abspath(project_dir)


def test_invalid_file_raises(tmp_path):
    turfs_file = tmp_path / "turfs.toml"
    turfs_file.write_text("this is = = not toml")
    with pytest.raises(TurfError, match="failed to parse"):
        TurfManager(turfs_file)