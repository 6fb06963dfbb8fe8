"""Candidate records and the relations they declare.

A ``CandidateRecord`` is one discovered unit: an identity at a version,
found at some origin and at some discovery depth, declaring constraints on
other identities. Records are immutable so they can be shared between
discovery threads and used as set members.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import Path

from nestsolve.core.candidates.versions import (
    ANY_VERSION,
    Version,
    VersionPredicate,
)

IDENTITY_PATTERN = re.compile(r"^[a-z][a-z0-9_-]{1,63}$")


def is_valid_identity(identity: str | None) -> bool:
    """Return True if *identity* is a non-empty, pattern-valid identity."""
    return bool(identity) and IDENTITY_PATTERN.match(identity) is not None


# ---------------------------------------------------------------------------
# Constraint & NestedRef: edges declared by a candidate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Constraint:
    """A relation from one candidate to any version of another identity.

    Depending on the list it is declared in, a constraint means the target
    is required (``depends``), suggested (``recommends``), incompatible
    (``breaks``) or discouraged (``conflicts``).

    Attributes:
        identity: The identity the constraint targets.
        predicate: Versions of the target the constraint applies to.
    """

    identity: str
    predicate: VersionPredicate = ANY_VERSION

    def matches(self, version: Version) -> bool:
        """Return True if *version* of the target satisfies the predicate."""
        return self.predicate.matches(version)

    def __str__(self) -> str:
        return f"{self.identity} {self.predicate}"


@dataclass(frozen=True)
class NestedRef:
    """A candidate archive embedded inside another candidate's root.

    Attributes:
        path: ``/``-separated path relative to the containing root.
    """

    path: str


@dataclass(frozen=True)
class Locator:
    """Where a candidate's bytes live.

    Attributes:
        path: Filesystem path of a directory or archive file.
        entry: Path inside the archive at ``path``, for entries that have
            not been materialized yet.
    """

    path: Path
    entry: str | None = None

    def __str__(self) -> str:
        if self.entry:
            return f"{self.path}!/{self.entry}"
        return str(self.path)


# ---------------------------------------------------------------------------
# CandidateRecord
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CandidateRecord:
    """One discovered unit under some identity.

    Attributes:
        identity: Stable name the candidate declares itself under.
        version: Semantic or opaque version.
        depends: Identities that must be selected alongside this one.
        recommends: Identities that should be selected (soft).
        breaks: Identities that must not be selected alongside this one.
        conflicts: Identities that should not be selected (soft).
        nested: Archives embedded in this candidate.
        origin: Where the candidate was found. None until discovery
            attaches it.
        depth: 0 for explicitly provided candidates, parent depth + 1 for
            candidates found inside another candidate.
        schema_version: Manifest format version the candidate declared.
    """

    identity: str
    version: Version
    depends: tuple[Constraint, ...] = ()
    recommends: tuple[Constraint, ...] = ()
    breaks: tuple[Constraint, ...] = ()
    conflicts: tuple[Constraint, ...] = ()
    nested: tuple[NestedRef, ...] = ()
    origin: Locator | None = None
    depth: int = 0
    schema_version: int = 1

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError(f"depth must be >= 0, got {self.depth}")

    @property
    def version_key(self) -> str:
        """The string a ``CandidateSet`` deduplicates on."""
        return self.version.friendly_string

    def located(self, origin: Locator, depth: int) -> CandidateRecord:
        """Return a copy of this record found at *origin* and *depth*."""
        return replace(self, origin=origin, depth=depth)

    def __str__(self) -> str:
        return f"{self.identity}@{self.version_key}"
