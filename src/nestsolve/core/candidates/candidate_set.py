"""Per-identity candidate collection with depth-aware insertion.

Every identity seen during discovery gets one ``CandidateSet``. The set
keeps at most one record per version string: when the same version is
found twice, the record discovered closest to the user (lowest depth) is
kept. Depth-zero records are the ones the user provided explicitly, and
they take precedence over anything found nested inside other candidates.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator

from nestsolve.core.candidates.models import CandidateRecord
from nestsolve.core.candidates.versions import SemanticVersion
from nestsolve.exceptions import DuplicateVersionError


class CandidateSet:
    """All discovered versions of one identity.

    Insertion is atomic per set, so discovery threads may call ``add()``
    concurrently. Once handed to the solver the set is only read.

    Invariants:
        - Every record in ``depth_zero`` is also in ``by_version``.
        - At most one record per distinct version string.
    """

    def __init__(self, identity: str) -> None:
        self.identity = identity
        self._by_version: dict[str, CandidateRecord] = {}
        self._depth_zero: set[CandidateRecord] = set()
        self._lock = threading.Lock()

    @property
    def by_version(self) -> dict[str, CandidateRecord]:
        with self._lock:
            return dict(self._by_version)

    @property
    def depth_zero(self) -> frozenset[CandidateRecord]:
        with self._lock:
            return frozenset(self._depth_zero)

    @property
    def is_user_provided(self) -> bool:
        """True if at least one record was provided explicitly (depth 0)."""
        with self._lock:
            return bool(self._depth_zero)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_version)

    def __iter__(self) -> Iterator[CandidateRecord]:
        return iter(self.by_version.values())

    def add(self, record: CandidateRecord) -> bool:
        """Insert *record*, keeping the shallowest record per version.

        Args:
            record: A record whose identity matches this set.

        Returns:
            True if the record was inserted or replaced an existing record
            found deeper; False if an equally shallow or shallower record
            for the same version is already present.
        """
        if record.identity != self.identity:
            raise ValueError(
                f"Cannot add {record.identity!r} to candidate set {self.identity!r}"
            )

        key = record.version_key
        with self._lock:
            existing = self._by_version.get(key)
            if existing is not None:
                if existing.depth <= record.depth:
                    return False
                del self._by_version[key]
                self._depth_zero.discard(existing)

            self._by_version[key] = record
            if record.depth == 0:
                self._depth_zero.add(record)
            return True

    def to_selectable(self) -> list[CandidateRecord]:
        """Return the records the solver may choose from, best first.

        - More than one depth-zero record: the user supplied two versions
          of one identity, which is an error.
        - Exactly one depth-zero record: it alone is selectable.
        - Otherwise every record, newest semantic version first. Records
          with opaque versions cannot be ordered; they follow the semantic
          ones in discovery order.

        Raises:
            DuplicateVersionError: If several depth-zero records exist.
        """
        with self._lock:
            depth_zero = list(self._depth_zero)
            records = list(self._by_version.values())

        if len(depth_zero) > 1:
            origins = sorted(
                f"[{r.version_key} at {r.origin}]" for r in depth_zero
            )
            raise DuplicateVersionError(self.identity, origins)
        if len(depth_zero) == 1:
            return depth_zero
        if len(records) > 1:
            semantic = [r for r in records if isinstance(r.version, SemanticVersion)]
            opaque = [r for r in records if not isinstance(r.version, SemanticVersion)]
            semantic.sort(key=lambda r: r.version, reverse=True)
            return semantic + opaque
        return records

    def __repr__(self) -> str:
        return f"CandidateSet({self.identity!r}, versions={sorted(self.by_version)})"
