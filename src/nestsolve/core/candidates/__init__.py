"""Candidate records, versions, and per-identity candidate sets.

All public names are re-exported here so callers can write
``from nestsolve.core.candidates import CandidateRecord``.
"""

from nestsolve.core.candidates.candidate_set import CandidateSet
from nestsolve.core.candidates.models import (
    IDENTITY_PATTERN,
    CandidateRecord,
    Constraint,
    Locator,
    NestedRef,
    is_valid_identity,
)
from nestsolve.core.candidates.versions import (
    ANY_VERSION,
    UNKNOWN_VERSION,
    OpaqueVersion,
    SemanticVersion,
    Version,
    VersionPredicate,
    is_comparable,
    parse_version,
)

__all__ = [
    "ANY_VERSION",
    "CandidateRecord",
    "CandidateSet",
    "Constraint",
    "IDENTITY_PATTERN",
    "Locator",
    "NestedRef",
    "OpaqueVersion",
    "SemanticVersion",
    "UNKNOWN_VERSION",
    "Version",
    "VersionPredicate",
    "is_comparable",
    "is_valid_identity",
    "parse_version",
]
