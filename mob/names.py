"""Mob-themed names for soldati."""

from __future__ import annotations

import random
from collections.abc import Iterable
from itertools import count

MOB_NAMES: tuple[str, ...] = (
    "vinnie",
    "sal",
    "tony",
    "joey",
    "frankie",
    "paulie",
    "gino",
    "carmine",
    "luca",
    "rocco",
    "enzo",
    "vito",
    "sonny",
    "mikey",
    "nicky",
    "angelo",
    "bruno",
    "carlo",
    "dante",
    "aldo",
)


def generate_name() -> str:
    """Return a random mob-themed name."""
    return random.choice(MOB_NAMES)


def generate_unique_name(used: Iterable[str] | None) -> str:
    """Return the first name not in ``used``, adding a numeric suffix once all are taken."""
    taken = set(used or ())
    for name in MOB_NAMES:
        if name not in taken:
            return name
    for suffix in count(2):
        for name in MOB_NAMES:
            candidate = f"{name}-{suffix}"
            if candidate not in taken:
                return candidate
    raise AssertionError("unreachable")