"""Concurrent discovery of candidates and the archives nested inside them.

Public API::

    from nestsolve.discovery import DiscoveryEngine

    engine = DiscoveryEngine()
    candidate_sets = engine.discover(["candidates/app.zip"])
"""

from __future__ import annotations

from nestsolve.discovery.engine import DiscoveryEngine
from nestsolve.discovery.filesystem import CandidateFilesystem, LocalFilesystem
from nestsolve.discovery.finders import (
    CandidateFinder,
    DirectoryCandidateFinder,
    ExplicitCandidateFinder,
)

__all__ = [
    "CandidateFilesystem",
    "CandidateFinder",
    "DirectoryCandidateFinder",
    "DiscoveryEngine",
    "ExplicitCandidateFinder",
    "LocalFilesystem",
]
