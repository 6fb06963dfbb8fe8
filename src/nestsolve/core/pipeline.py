"""Caller-facing entry points: discover, solve, verify.

``resolve()`` runs one complete resolution::

    result = resolve([Path("candidates/app.zip")], explicitly_provided={"app"})
    for identity, record in result.items():
        print(identity, record.version, record.origin)
    for line in result.warnings:
        print("warning:", line)

Nothing survives between calls: every run discovers from scratch, builds
fresh candidate sets and a fresh solver. When ``resolve()`` creates its own
filesystem, nested archives stay staged until the result is closed::

    with resolve([Path("candidates/app.zip")]) as result:
        ...
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from nestsolve.config import ResolverConfig
from nestsolve.core.candidates import CandidateRecord, CandidateSet, Locator
from nestsolve.core.solver import (
    BackendFactory,
    ConstraintSolver,
    ResultVerifier,
    VerificationReport,
    pysat_backend,
)
from nestsolve.discovery.engine import DiscoveryEngine
from nestsolve.discovery.filesystem import CandidateFilesystem, LocalFilesystem
from nestsolve.discovery.finders import CandidateFinder
from nestsolve.parsers import ManifestParser

logger = logging.getLogger(__name__)


class ResolutionResult(Mapping[str, CandidateRecord]):
    """Read-only selection of one record per resolved identity.

    Behaves as a mapping of identity to ``CandidateRecord``.

    Attributes:
        warnings: Soft violation lines (unmet recommends, present
            conflicts). Empty when there were none.
        report: The full verification report.
        mandatory: Identities that were required to be present.

    Closing the result removes archives that ``resolve()`` staged on its
    own filesystem. Usable as a context manager.
    """

    def __init__(
        self,
        selection: Mapping[str, CandidateRecord],
        report: VerificationReport,
        mandatory: frozenset[str],
    ) -> None:
        self._selection = MappingProxyType(dict(selection))
        self.report = report
        self.mandatory = mandatory
        self._staging: LocalFilesystem | None = None

    @property
    def selection(self) -> Mapping[str, CandidateRecord]:
        return self._selection

    @property
    def warnings(self) -> tuple[str, ...]:
        return self.report.soft

    def close(self) -> None:
        """Remove staged nested archives; their ``origin`` paths become stale."""
        if self._staging is not None:
            self._staging.cleanup()
            self._staging = None

    def __enter__(self) -> ResolutionResult:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __getitem__(self, identity: str) -> CandidateRecord:
        return self._selection[identity]

    def __iter__(self) -> Iterator[str]:
        return iter(self._selection)

    def __len__(self) -> int:
        return len(self._selection)

    def __repr__(self) -> str:
        entries = ", ".join(str(self._selection[k]) for k in sorted(self._selection))
        return f"ResolutionResult({entries})"


def resolve_candidates(
    candidate_sets: Mapping[str, CandidateSet],
    explicitly_provided: Iterable[str] = (),
    *,
    config: ResolverConfig | None = None,
    backend_factory: BackendFactory = pysat_backend,
) -> ResolutionResult:
    """Solve and verify already discovered candidate sets.

    Raises:
        ResolutionError: Or one of its subclasses, on any failure.
    """
    config = config or ResolverConfig()
    mandatory = set(explicitly_provided)
    mandatory.update(i for i, cset in candidate_sets.items() if cset.is_user_provided)

    solver = ConstraintSolver(backend_factory, timeout=config.solve_timeout)
    selection = solver.solve(candidate_sets, mandatory)

    report = ResultVerifier().verify(selection, mandatory)
    report.raise_for_errors()
    if report.soft:
        logger.warning("%s", report.message)

    return ResolutionResult(selection, report, frozenset(mandatory))


def resolve(
    sources: Iterable[Locator | Path | str],
    explicitly_provided: Iterable[str] = (),
    *,
    config: ResolverConfig | None = None,
    parser: ManifestParser | None = None,
    filesystem: CandidateFilesystem | None = None,
    backend_factory: BackendFactory = pysat_backend,
) -> ResolutionResult:
    """Discover candidates from *sources*, then select and verify.

    Args:
        sources: Explicitly provided locations, discovered at depth 0.
        explicitly_provided: Extra identities that must be selected. Any
            identity with a depth-0 candidate is mandatory regardless.
        config: Run settings.
        parser: Manifest parser override.
        filesystem: Filesystem override. The caller cleans up its staging.
            When omitted, a private ``LocalFilesystem`` is created, removed on
            failure and otherwise released by ``ResolutionResult.close()``.
        backend_factory: SAT backend override.

    Returns:
        The verified selection.

    Raises:
        DiscoveryError: If discovery fails.
        ResolutionError: Or a subclass, if selection or verification fails.
    """
    config = config or ResolverConfig()
    owned = LocalFilesystem() if filesystem is None else None
    engine = DiscoveryEngine(parser=parser, filesystem=owned or filesystem, config=config)

    started = time.monotonic()
    try:
        candidate_sets = engine.discover(sources)
        discovered = time.monotonic()
        result = resolve_candidates(
            candidate_sets,
            explicitly_provided,
            config=config,
            backend_factory=backend_factory,
        )
    except BaseException:
        if owned is not None:
            owned.cleanup()
        raise
    finished = time.monotonic()
    result._staging = owned

    logger.debug("Candidate discovery time: %.0fms", (discovered - started) * 1000)
    logger.debug("Candidate resolution time: %.0fms", (finished - discovered) * 1000)
    return result


def resolve_from_finders(
    finders: Iterable[CandidateFinder],
    explicitly_provided: Iterable[str] = (),
    **kwargs,
) -> ResolutionResult:
    """Run ``resolve()`` on every locator the *finders* provide."""
    sources: list[Locator] = []
    for finder in finders:
        sources.extend(finder.find())
    return resolve(sources, explicitly_provided, **kwargs)
