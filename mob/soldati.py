"""Storage of soldati, one TOML file per worker."""

from __future__ import annotations

import os
import re
import tomllib
from datetime import datetime
from pathlib import Path

import tomli_w

from .models import Soldati, SoldatiStats
from .names import generate_unique_name

MAX_NAME_LENGTH = 64

_VALID_NAME = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9_-]*")


class InvalidNameError(ValueError):
    """Raised when a soldati name contains invalid characters."""


class SoldatiNotFoundError(LookupError):
    """Raised when no soldati with the requested name is stored."""


class SoldatiExistsError(FileExistsError):
    """Raised when creating a soldati whose name is already taken."""


def validate_name(name: str) -> None:
    """Raise InvalidNameError unless ``name`` is safe to use as a soldati file name."""
    if not name:
        raise InvalidNameError("invalid soldati name: name cannot be empty")
    if len(name.encode("utf-8")) > MAX_NAME_LENGTH:
        raise InvalidNameError(
            f"invalid soldati name: name exceeds maximum length of {MAX_NAME_LENGTH} characters"
        )
    if ".." in name or "/" in name or "\\" in name:
        raise InvalidNameError("invalid soldati name: name contains invalid path characters")
    if name.startswith("."):
        raise InvalidNameError("invalid soldati name: name cannot start with a dot")
    if not _VALID_NAME.fullmatch(name):
        raise InvalidNameError(
            "invalid soldati name: name must start with alphanumeric and contain only "
            "alphanumeric characters, hyphens, and underscores"
        )


def _encode(soldati: Soldati) -> bytes:
    return tomli_w.dumps(soldati.to_dict()).encode("utf-8")


class SoldatiManager:
    """Creates, reads, updates and deletes soldati stored in a directory."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        return self.directory / f"{name}.toml"

    def create(self, name: str = "") -> Soldati:
        """Create a soldati; an empty name picks the first free mob name."""
        if not name:
            name = generate_unique_name(self._list_names())
        validate_name(name)

        now = datetime.now().astimezone()
        soldati = Soldati(name=name, created_at=now, last_active=now, stats=SoldatiStats())
        content = _encode(soldati)
        try:
            with self._path(name).open("xb") as handle:
                handle.write(content)
        except FileExistsError:
            raise SoldatiExistsError(f"soldati {name!r} already exists") from None
        return soldati

    def get(self, name: str) -> Soldati:
        try:
            text = self._path(name).read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SoldatiNotFoundError(f"soldati {name!r} not found") from None
        return Soldati.from_dict(tomllib.loads(text))

    def list(self) -> list[Soldati]:
        return [self.get(name) for name in self._list_names()]

    def update(self, soldati: Soldati) -> None:
        """Save changes to a soldati that must already exist."""
        self.get(soldati.name)
        self._path(soldati.name).write_bytes(_encode(soldati))

    def delete(self, name: str) -> None:
        try:
            self._path(name).unlink()
        except FileNotFoundError:
            raise SoldatiNotFoundError(f"soldati {name!r} not found") from None

    def assign_turf(self, name: str, turf: str) -> None:
        """Add a turf; the first one assigned becomes primary."""
        soldati = self.get(name)
        if turf in soldati.turfs:
            return
        soldati.turfs.append(turf)
        if not soldati.primary_turf:
            soldati.primary_turf = turf
        self.update(soldati)

    def unassign_turf(self, name: str, turf: str) -> None:
        """Remove a turf; a removed primary falls back to the first remaining turf."""
        soldati = self.get(name)
        soldati.turfs = [t for t in soldati.turfs if t != turf]
        if soldati.primary_turf == turf:
            soldati.primary_turf = soldati.turfs[0] if soldati.turfs else ""
        self.update(soldati)

    def set_primary_turf(self, name: str, turf: str) -> None:
        """Set the primary turf, which must be assigned unless it is empty."""
        soldati = self.get(name)
        if turf and turf not in soldati.turfs:
            raise ValueError(f"turf {turf!r} is not assigned to soldati {name!r}")
        soldati.primary_turf = turf
        self.update(soldati)

    def list_by_turf(self, turf: str) -> list[Soldati]:
        """Return soldati working a turf; those with no turfs work every turf."""
        everyone = self.list()
        if not turf:
            return everyone
        return [s for s in everyone if not s.turfs or turf in s.turfs]

    def _list_names(self) -> list[str]:
        with os.scandir(self.directory) as entries:
            files = sorted(
                entry.name for entry in entries if not entry.is_dir(follow_symlinks=False)
            )
        return [name.removesuffix(".toml") for name in files if name.endswith(".toml")]