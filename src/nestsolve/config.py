"""Runtime settings for a single discover -> solve -> verify run."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_DISCOVERY_TIMEOUT = 30.0
DEFAULT_MANIFEST_NAMES = ("manifest.json", "manifest.yaml")
DEFAULT_ARCHIVE_SUFFIXES = (".zip", ".jar")


@dataclass(frozen=True)
class ResolverConfig:
    """Tunable settings for discovery and solving.

    Attributes:
        discovery_timeout: Wall-clock limit in seconds for the whole
            discovery phase.
        solve_timeout: Wall-clock limit in seconds shared by every
            satisfiability check of one solve. None means unbounded.
        max_workers: Size of the discovery worker pool. None means one
            less than the available CPUs, at least one.
        manifest_names: Manifest file names tried in order at each root.
        archive_suffixes: File suffixes treated as nestable archives.
        allow_unknown_version: Accept manifests without a version, using
            the ``unknown`` sentinel instead of failing.
    """

    discovery_timeout: float = DEFAULT_DISCOVERY_TIMEOUT
    solve_timeout: float | None = None
    max_workers: int | None = None
    manifest_names: tuple[str, ...] = DEFAULT_MANIFEST_NAMES
    archive_suffixes: tuple[str, ...] = DEFAULT_ARCHIVE_SUFFIXES
    allow_unknown_version: bool = False

    def __post_init__(self) -> None:
        if self.discovery_timeout <= 0:
            raise ValueError("discovery_timeout must be positive")
        if self.solve_timeout is not None and self.solve_timeout <= 0:
            raise ValueError("solve_timeout must be positive")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if not self.manifest_names:
            raise ValueError("at least one manifest name is required")

    @property
    def worker_count(self) -> int:
        """Return the effective discovery pool size."""
        if self.max_workers is not None:
            return self.max_workers
        return max(1, (os.cpu_count() or 1) - 1)
