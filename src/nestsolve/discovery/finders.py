"""Candidate finders: where depth-zero sources come from.

A finder turns some environment-specific notion of "what the user provided"
into locators. The pipeline feeds every finder's locators to discovery at
depth 0.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from nestsolve.config import DEFAULT_ARCHIVE_SUFFIXES
from nestsolve.core.candidates import Locator
from nestsolve.discovery.filesystem import CandidateFilesystem, LocalFilesystem

logger = logging.getLogger(__name__)


class CandidateFinder(ABC):
    """Source of explicitly provided candidate locators."""

    @abstractmethod
    def find(self) -> list[Locator]:
        """Return the locators this finder provides, in a stable order."""


class ExplicitCandidateFinder(CandidateFinder):
    """A fixed list of paths."""

    def __init__(self, paths: Iterable[Path | str]) -> None:
        self.paths = [Path(p) for p in paths]

    def find(self) -> list[Locator]:
        return [Locator(p) for p in self.paths]


class DirectoryCandidateFinder(CandidateFinder):
    """Every archive and sub-directory inside a candidates folder.

    Hidden entries are ignored. A missing folder yields nothing.

    Args:
        folder: The folder to list.
        archive_suffixes: Suffixes of files treated as candidates.
        filesystem: Used to list and probe entries.
    """

    def __init__(
        self,
        folder: Path | str,
        archive_suffixes: tuple[str, ...] = DEFAULT_ARCHIVE_SUFFIXES,
        filesystem: CandidateFilesystem | None = None,
    ) -> None:
        self.folder = Path(folder)
        self.archive_suffixes = tuple(s.lower() for s in archive_suffixes)
        self.filesystem = filesystem or LocalFilesystem()

    def find(self) -> list[Locator]:
        fs = self.filesystem
        folder = Locator(self.folder)
        if not fs.is_dir(folder):
            logger.debug("Candidates folder %s does not exist", self.folder)
            return []

        found: list[Locator] = []
        for name in fs.list_entries(folder):
            if name.startswith("."):
                continue
            locator = Locator(self.folder / name)
            if fs.is_dir(locator) or name.lower().endswith(self.archive_suffixes):
                found.append(locator)
        return found
