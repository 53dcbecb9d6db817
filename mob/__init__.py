"""On-disk state for a crew of coding agents: registry, beads, reports, soldati, turfs, sweeps, patrol and chat."""

__version__ = "0.1.0"