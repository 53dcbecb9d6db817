"""Registration and lookup of turfs (project directories) in a TOML file."""

from __future__ import annotations

import copy
import os
import tomllib
from pathlib import Path

import tomli_w

from .models import Turf


class TurfError(Exception):
    """Raised when a turf cannot be added, found or removed."""


class TurfManager:
    """Keeps the list of registered turfs and saves it after every change."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._turfs: list[Turf] = []
        if self.path.exists():
            try:
                data = tomllib.loads(self.path.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as exc:
                raise TurfError(f"failed to parse turfs file: {exc}") from exc
            self._turfs = [Turf.from_dict(item) for item in data.get("turfs") or []]

    def add(self, path: str | os.PathLike[str], name: str, main_branch: str) -> None:
        """Register a directory under a unique name."""
        target = Path(path)
        if not target.exists():
            raise TurfError(f"path does not exist: {path}")
        if not target.is_dir():
            raise TurfError(f"path is not a directory: {path}")
        abs_path = os.path.abspath(target)

        for turf in self._turfs:
            if turf.name == name:
                raise TurfError(f"turf already exists: {name}")
            if turf.path == abs_path:
                raise TurfError(f"path already registered as turf: {turf.name}")

        self._turfs.append(Turf(name=name, path=abs_path, main_branch=main_branch))
        self._save()

    def remove(self, name: str) -> None:
        for index, turf in enumerate(self._turfs):
            if turf.name == name:
                del self._turfs[index]
                self._save()
                return
        raise TurfError(f"turf not found: {name}")

    def list(self) -> list[Turf]:
        """Return copies of the registered turfs."""
        return [copy.copy(turf) for turf in self._turfs]

    def get(self, name: str) -> Turf:
        """Return the registered turf itself, so changes to it are kept."""
        for turf in self._turfs:
            if turf.name == name:
                return turf
        raise TurfError(f"turf not found: {name}")

    def _save(self) -> None:
        payload = {"turfs": [turf.to_dict() for turf in self._turfs]}
        self.path.write_text(tomli_w.dumps(payload), encoding="utf-8")