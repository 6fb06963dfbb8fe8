"""Filesystem access for candidate discovery.

Discovery never touches the disk directly. It goes through a
``CandidateFilesystem``, which knows how to:

- normalize a ``Locator`` to a canonical form (used as a memo key);
- open a locator as a root that manifests can be read from;
- list, probe and locate nested archive entries;
- materialize a nested entry into a fresh standalone location.

``LocalFilesystem`` handles directories and zip-format archives on the
local disk and stages nested archives in a temporary directory.
"""

from __future__ import annotations

import logging
import posixpath
import shutil
import tempfile
import threading
import uuid
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from nestsolve.core.candidates import Locator
from nestsolve.exceptions import DiscoveryError

logger = logging.getLogger(__name__)


class CandidateFilesystem(ABC):
    """Abstract locator and storage operations used by discovery."""

    @abstractmethod
    def normalize(self, locator: Locator) -> Locator:
        """Return the canonical form of *locator*."""

    @abstractmethod
    def open_root(self, locator: Locator) -> Any:
        """Context manager yielding a path-like root for *locator*.

        The root supports ``/`` and ``open("rb")`` so a manifest parser can
        read files beneath it.
        """

    @abstractmethod
    def list_entries(self, locator: Locator) -> list[str]:
        """Return the sorted names of the entries directly under *locator*."""

    @abstractmethod
    def exists(self, locator: Locator) -> bool:
        """True if *locator* points at an existing file or directory."""

    @abstractmethod
    def is_dir(self, locator: Locator) -> bool:
        """True if *locator* points at a directory."""

    @abstractmethod
    def resolve_nested(self, origin: Locator, path: str) -> Locator:
        """Locate *path*, relative to the root of *origin*."""

    @abstractmethod
    def materialize(self, source: Locator) -> Locator:
        """Copy the bytes at *source* to a fresh location and return it.

        Raises:
            DiscoveryError: If the bytes cannot be copied.
        """


class LocalFilesystem(CandidateFilesystem):
    """Local-disk filesystem with zip archive support.

    Args:
        staging_dir: Directory receiving materialized nested archives.
            Created lazily under the system temp directory when omitted.
    """

    def __init__(self, staging_dir: Path | None = None) -> None:
        self._staging_dir = staging_dir
        self._owns_staging = staging_dir is None
        self._lock = threading.Lock()

    @property
    def staging_dir(self) -> Path:
        with self._lock:
            if self._staging_dir is None:
                self._staging_dir = Path(tempfile.mkdtemp(prefix="nestsolve-"))
            return self._staging_dir

    def cleanup(self) -> None:
        """Remove the staging directory if this instance created it."""
        with self._lock:
            if self._owns_staging and self._staging_dir is not None:
                shutil.rmtree(self._staging_dir, ignore_errors=True)
                self._staging_dir = None

    # -- Locators -----------------------------------------------------------

    def normalize(self, locator: Locator) -> Locator:
        entry = locator.entry
        if entry:
            entry = posixpath.normpath(entry.lstrip("/"))
        return Locator(Path(locator.path).resolve(), entry or None)

    @contextmanager
    def open_root(self, locator: Locator) -> Iterator[Any]:
        if locator.entry:
            raise DiscoveryError(f"Cannot open unmaterialized entry {locator} as a root")
        path = Path(locator.path)
        if path.is_dir():
            yield path
            return
        if not zipfile.is_zipfile(path):
            raise DiscoveryError(f"Candidate at {path} is neither a directory nor an archive")
        with zipfile.ZipFile(path) as archive:
            yield zipfile.Path(archive)

    def resolve_nested(self, origin: Locator, path: str) -> Locator:
        if Path(origin.path).is_dir():
            return self.normalize(Locator(Path(origin.path) / path))
        return self.normalize(Locator(origin.path, path))

    # -- Probes ---------------------------------------------------------------

    @staticmethod
    def _archive_names(path: Path) -> list[str]:
        try:
            with zipfile.ZipFile(path) as archive:
                return archive.namelist()
        except (OSError, zipfile.BadZipFile):
            return []

    def exists(self, locator: Locator) -> bool:
        path = Path(locator.path)
        if not locator.entry:
            return path.exists()
        names = self._archive_names(path)
        prefix = locator.entry.rstrip("/") + "/"
        return locator.entry in names or any(n.startswith(prefix) for n in names)

    def is_dir(self, locator: Locator) -> bool:
        path = Path(locator.path)
        if not locator.entry:
            return path.is_dir()
        prefix = locator.entry.rstrip("/") + "/"
        return any(n.startswith(prefix) for n in self._archive_names(path))

    def list_entries(self, locator: Locator) -> list[str]:
        path = Path(locator.path)
        if not locator.entry and path.is_dir():
            return sorted(child.name for child in path.iterdir())

        prefix = (locator.entry.rstrip("/") + "/") if locator.entry else ""
        entries: set[str] = set()
        for name in self._archive_names(path):
            if name.startswith(prefix) and name != prefix:
                entries.add(name[len(prefix):].split("/", 1)[0])
        return sorted(entries)

    # -- Materialization ----------------------------------------------------

    def materialize(self, source: Locator) -> Locator:
        suffix = Path(source.entry or source.path).suffix
        dest = self.staging_dir / f"{uuid.uuid4()}{suffix}"
        try:
            if source.entry:
                with zipfile.ZipFile(source.path) as archive:
                    with archive.open(source.entry) as src, dest.open("wb") as dst:
                        shutil.copyfileobj(src, dst)
            else:
                shutil.copyfile(source.path, dest)
        except (OSError, KeyError, zipfile.BadZipFile) as exc:
            raise DiscoveryError(
                f"Failed to materialize nested archive {source} into {dest}"
            ) from exc
        logger.debug("Materialized %s into %s", source, dest)
        return Locator(dest)
