"""Base interface for candidate manifest parsers.

Discovery treats manifest parsing as a black box with a two-outcome error
contract:

- ``ManifestNotFoundError`` -- the manifest is absent. Not fatal; discovery
  tries the next manifest name and yields zero candidates if none exists.
- ``MalformedManifestError`` -- the manifest exists but cannot be decoded or
  validated. Fatal for the whole discovery run.

Parsed records carry no origin and depth 0; the discovery engine attaches
both before inserting them into a ``CandidateSet``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, Any

from nestsolve.core.candidates import CandidateRecord
from nestsolve.exceptions import ManifestNotFoundError

LATEST_SCHEMA_VERSION = 1


class ManifestParser(ABC):
    """Turn a manifest byte stream into zero or more candidate records."""

    @abstractmethod
    def parse(self, stream: IO[bytes], source: str = "<stream>") -> list[CandidateRecord]:
        """Parse one manifest.

        Args:
            stream: Binary stream positioned at the start of the manifest.
            source: Human-readable location used in error messages.

        Returns:
            Records declared by the manifest, in declaration order.

        Raises:
            MalformedManifestError: If the content cannot be decoded or
                does not describe valid candidates.
        """

    def read(self, root: Any, name: str) -> list[CandidateRecord]:
        """Open manifest *name* under *root* and parse it.

        *root* is any path-like object supporting ``/`` and ``open("rb")``,
        such as ``pathlib.Path`` or ``zipfile.Path``.

        Raises:
            ManifestNotFoundError: If the manifest does not exist.
            MalformedManifestError: If it exists but cannot be parsed.
        """
        path = root / name
        try:
            stream = path.open("rb")
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError) as exc:
            raise ManifestNotFoundError(f"No {name} in {root}") from exc
        with stream:
            return self.parse(stream, source=str(path))
