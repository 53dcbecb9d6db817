"""JSONL-backed storage for beads, with dependency queries."""

from __future__ import annotations

import json
import os
import secrets
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path

from .models import Bead, BeadEvent, BeadEventType, BeadStatus, BeadType


class BeadNotFoundError(LookupError):
    """Raised when no bead has the requested ID."""


def _now() -> datetime:
    return datetime.now().astimezone()


def _generate_id() -> str:
    return "bd-" + secrets.token_hex(2)


@dataclass
class BeadFilter:
    """Criteria for listing beads; empty or None fields match everything."""

    status: BeadStatus | str | None = None
    turf: str | None = None
    assignee: str | None = None
    type: BeadType | str | None = None

    def matches(self, bead: Bead) -> bool:
        checks = (
            (self.status, bead.status),
            (self.turf, bead.turf),
            (self.assignee, bead.assignee),
            (self.type, bead.type),
        )
        return all(not wanted or wanted == actual for wanted, actual in checks)


@dataclass
class DependencyTree:
    """A bead with the trees of beads blocking it and blocked by it."""

    bead: Bead
    blocked_by: list[DependencyTree] = field(default_factory=list)
    blocking: list[DependencyTree] = field(default_factory=list)


class BeadStore:
    """Beads kept one per line in ``open.jsonl`` inside a directory."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.open_file = self.directory / "open.jsonl"
        self._lock = threading.RLock()

    def create(self, bead: Bead) -> Bead:
        """Assign an ID, timestamps, branch and a creation event, then store the bead."""
        with self._lock:
            bead.id = _generate_id()
            bead.created_at = _now()
            bead.updated_at = _now()
            bead.branch = "mob/" + bead.id
            bead.history = [
                BeadEvent(
                    type=BeadEventType.CREATED,
                    actor=bead.created_by or "user",
                    id=_generate_id(),
                    timestamp=bead.created_at,
                )
            ]
            with self.open_file.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(bead.to_dict()) + "\n")
            return bead

    def list(self, bead_filter: BeadFilter | None = None) -> list[Bead]:
        """Return every bead that matches the filter."""
        bead_filter = bead_filter or BeadFilter()
        with self._lock:
            return [bead for bead in self._read_all() if bead_filter.matches(bead)]

    def list_ready(self, turf: str = "") -> list[Bead]:
        """Return open, unblocked beads ordered by priority (0 first)."""
        with self._lock:
            beads = self._read_all()
        blocked = {
            blocked_id
            for bead in beads
            if bead.status != BeadStatus.CLOSED
            for blocked_id in bead.blocks
        }
        ready = [
            bead
            for bead in beads
            if bead.status == BeadStatus.OPEN
            and (not turf or bead.turf == turf)
            and bead.id not in blocked
        ]
        return sorted(ready, key=lambda bead: bead.priority)

    def get(self, bead_id: str) -> Bead:
        with self._lock:
            for bead in self._read_all():
                if bead.id == bead_id:
                    return bead
        raise BeadNotFoundError(f"bead not found: {bead_id}")

    def add_event(self, bead_id: str, event: BeadEvent) -> None:
        """Append an event to a bead's history, filling in its ID and time if missing."""
        with self._lock:
            beads = self._read_all()
            bead = next((b for b in beads if b.id == bead_id), None)
            if bead is None:
                raise BeadNotFoundError(f"bead not found: {bead_id}")
            event = replace(
                event,
                id=event.id or _generate_id(),
                timestamp=event.timestamp or _now(),
            )
            bead.history.append(event)
            bead.updated_at = _now()
            self._write_all(beads)

    def add_comment(self, bead_id: str, actor: str, comment: str) -> None:
        self.add_event(
            bead_id, BeadEvent(type=BeadEventType.COMMENT, actor=actor, comment=comment)
        )

    def update(self, bead: Bead) -> Bead:
        """Replace a stored bead, recording a status-change event when the status moved."""
        with self._lock:
            beads = self._read_all()
            for index, old in enumerate(beads):
                if old.id == bead.id:
                    break
            else:
                raise BeadNotFoundError(f"bead not found: {bead.id}")

            bead.updated_at = _now()
            if not bead.history:
                bead.history = list(old.history)
            if old.status != bead.status:
                bead.history.append(
                    BeadEvent(
                        type=BeadEventType.STATUS_CHANGE,
                        actor="system",
                        from_status=str(old.status),
                        to_status=str(bead.status),
                        id=_generate_id(),
                        timestamp=_now(),
                    )
                )
            beads[index] = bead
            self._write_all(beads)
            return bead

    def get_blocked_by(self, bead_id: str) -> list[Bead]:
        """Return beads that list ``bead_id`` in their blocks."""
        with self._lock:
            target = self.get(bead_id)
            if not target.blocks:
                return []
            return [bead for bead in self._read_all() if bead_id in bead.blocks]

    def get_blocking(self, bead_id: str) -> list[Bead]:
        """Return the beads that ``bead_id`` blocks, skipping missing ones."""
        with self._lock:
            bead = self.get(bead_id)
            blocking = []
            for blocked_id in bead.blocks:
                try:
                    blocking.append(self.get(blocked_id))
                except BeadNotFoundError:
                    continue
            return blocking

    def get_dependency_tree(self, bead_id: str) -> DependencyTree:
        with self._lock:
            tree = self._build_tree(bead_id, set())
        # The root is never visited before, so a tree is always built.
        assert tree is not None
        return tree

    def _build_tree(self, bead_id: str, visited: set[str]) -> DependencyTree | None:
        if bead_id in visited:
            return None
        visited.add(bead_id)

        tree = DependencyTree(bead=self.get(bead_id))
        for other in self._read_all():
            for blocked_id in other.blocks:
                if blocked_id == bead_id:
                    subtree = self._subtree(other.id, visited)
                    if subtree is not None:
                        tree.blocked_by.append(subtree)
        for blocked_id in tree.bead.blocks:
            subtree = self._subtree(blocked_id, visited)
            if subtree is not None:
                tree.blocking.append(subtree)
        return tree

    def _subtree(self, bead_id: str, visited: set[str]) -> DependencyTree | None:
        try:
            return self._build_tree(bead_id, visited)
        except BeadNotFoundError:
            return None

    def _read_all(self) -> list[Bead]:
        try:
            handle = self.open_file.open(encoding="utf-8")
        except FileNotFoundError:
            return []
        beads = []
        with handle:
            for line in handle:
                try:
                    beads.append(Bead.from_dict(json.loads(line)))
                except (ValueError, KeyError, TypeError, AttributeError):
                    continue
        return beads

    def _write_all(self, beads: list[Bead]) -> None:
        tmp = self.open_file.with_name(self.open_file.name + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as handle:
                for bead in beads:
                    handle.write(json.dumps(bead.to_dict()) + "\n")
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        os.replace(tmp, self.open_file)