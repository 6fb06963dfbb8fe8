"""SAT-based selection of one candidate per identity.

Encodes the selection problem as a Boolean satisfiability instance, in the
style of the 0install solver and OPIUM (Tucker et al., ICSE 2007):

- one variable per selectable candidate;
- exactly one candidate per mandatory identity, at most one otherwise;
- ``depends``: ``X -> (m1 or m2 or ...)``, i.e. ``(-X, m1, m2, ...)``;
  a dependency without any matching candidate degenerates to ``(-X)``;
- ``breaks``: ``X -> not Y`` for every matching ``Y``, i.e. ``(-X, -Y)``.

Identities are then probed one at a time: the best candidate that keeps the
accumulated assumptions satisfiable is assumed selected. ``recommends`` and
``conflicts`` are not encoded; the verifier reports them.

When every identity has a single user-provided candidate and those already
satisfy ``depends`` and ``breaks``, no encoding is built at all.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from nestsolve.core.candidates import CandidateRecord, CandidateSet, Constraint
from nestsolve.core.solver.backend import (
    BackendFactory,
    ClauseContradiction,
    SatBackend,
    pysat_backend,
)
from nestsolve.exceptions import (
    ContradictionError,
    ResolutionError,
    UnsatisfiableMandatoryError,
)

logger = logging.getLogger(__name__)

Selection = dict[str, CandidateRecord]


class ConstraintSolver:
    """Select at most one candidate per identity under hard constraints.

    Single-threaded and blocking. Each ``solve()`` call builds and disposes
    its own SAT backend, so one instance may be reused across runs but must
    not be called concurrently.

    Args:
        backend_factory: Creates a ``SatBackend`` for a given variable count
            and time limit. Defaults to the python-sat Glucose3 backend.
        timeout: Seconds allowed for all satisfiability checks of one
            ``solve()`` call. None means unbounded.
    """

    def __init__(
        self,
        backend_factory: BackendFactory = pysat_backend,
        timeout: float | None = None,
    ) -> None:
        self._backend_factory = backend_factory
        self._timeout = timeout

    def solve(
        self,
        candidate_sets: Mapping[str, CandidateSet],
        mandatory: Iterable[str] = (),
    ) -> Selection:
        """Pick a constraint-satisfying candidate per identity.

        Args:
            candidate_sets: Discovered candidates, keyed by identity.
            mandatory: Identities that must be selected. Identities with a
                depth-zero candidate are added automatically.

        Returns:
            Mapping of identity to the selected record. Optional identities
            that cannot be selected are simply absent.

        Raises:
            DuplicateVersionError: If an identity has two depth-zero records.
            ContradictionError: If the encoding is contradictory by itself.
            UnsatisfiableMandatoryError: If a mandatory identity cannot be
                selected.
            ResolutionTimeoutError: If the solver runs out of time.
            ResolutionError: If the model selects two candidates of one
                identity.
        """
        selectable: dict[str, list[CandidateRecord]] = {}
        required = set(mandatory)
        advanced = False

        for identity in sorted(candidate_sets):
            cset = candidate_sets[identity]
            records = cset.to_selectable()
            if not records:
                continue
            selectable[identity] = records
            advanced |= len(records) > 1 or records[0].depth > 0
            if cset.is_user_provided:
                required.add(identity)

        missing = sorted(required - selectable.keys())
        if missing:
            raise UnsatisfiableMandatoryError(
                missing[0],
                f"Mandatory identity {missing[0]!r} has no candidates",
            )

        if not advanced:
            selection = {identity: records[0] for identity, records in selectable.items()}
            if self._consistent(selection):
                logger.debug("No ambiguous identities, skipping SAT solving")
                return selection
            logger.debug("Unique candidates violate a hard relation, solving anyway")

        return self._solve_sat(selectable, required)

    @staticmethod
    def _consistent(selection: Selection) -> bool:
        """True if no selected record has an unmet depends or a present breaks."""

        def present(constraint: Constraint) -> bool:
            other = selection.get(constraint.identity)
            return other is not None and constraint.matches(other.version)

        return all(
            all(present(dep) for dep in record.depends)
            and not any(present(brk) for brk in record.breaks)
            for record in selection.values()
        )

    # -- SAT path -----------------------------------------------------------

    def _solve_sat(
        self,
        selectable: dict[str, list[CandidateRecord]],
        required: set[str],
    ) -> Selection:
        var_map, inv_map = self._assign_variables(selectable)
        logger.debug(
            "Encoding %d candidates across %d identities", len(var_map), len(selectable)
        )

        with self._backend_factory(len(var_map), self._timeout) as backend:
            self._encode(backend, selectable, required, var_map)
            assumptions = self._probe(backend, selectable, required, var_map)

            if not backend.is_satisfiable(assumptions):
                raise ResolutionError(
                    "Could not resolve candidate collection: final assumptions are unsatisfiable"
                )
            model = backend.model()

        result: Selection = {}
        for lit in model:
            if lit <= 0 or lit not in inv_map:
                continue
            record = inv_map[lit]
            if record.identity in result:
                raise ResolutionError(
                    f"Duplicate identity {record.identity!r} after solving - wrong constraints?"
                )
            result[record.identity] = record
        return result

    @staticmethod
    def _assign_variables(
        selectable: dict[str, list[CandidateRecord]],
    ) -> tuple[dict[int, int], dict[int, CandidateRecord]]:
        # Keyed by id() so records that compare equal stay distinct variables.
        var_map: dict[int, int] = {}
        inv_map: dict[int, CandidateRecord] = {}
        next_var = 1
        for records in selectable.values():
            for record in records:
                var_map[id(record)] = next_var
                inv_map[next_var] = record
                next_var += 1
        return var_map, inv_map

    @staticmethod
    def _matching(
        constraint: Constraint,
        selectable: dict[str, list[CandidateRecord]],
        var_map: dict[int, int],
    ) -> list[int]:
        return [
            var_map[id(c)]
            for c in selectable.get(constraint.identity, [])
            if constraint.matches(c.version)
        ]

    def _encode(
        self,
        backend: SatBackend,
        selectable: dict[str, list[CandidateRecord]],
        required: set[str],
        var_map: dict[int, int],
    ) -> None:
        # Step 1: cardinality per identity
        for identity, records in selectable.items():
            lits = [var_map[id(r)] for r in records]
            try:
                if identity in required:
                    backend.add_exactly(lits, 1)
                else:
                    backend.add_at_most(lits, 1)
            except ClauseContradiction as exc:
                raise ContradictionError(identity, "adding identity") from exc

        for records in selectable.values():
            for record in records:
                var = var_map[id(record)]

                # Step 2: X -> (m1 or m2 ...)  ==  (-X or m1 or m2 ...)
                for dep in record.depends:
                    clause = self._matching(dep, selectable, var_map) + [-var]
                    try:
                        backend.add_clause(clause)
                    except ClauseContradiction as exc:
                        raise ContradictionError(
                            record.identity, f"requires {dep}", dep
                        ) from exc

                # Step 3: X -> not Y  ==  (-X or -Y) for each matching Y
                for brk in record.breaks:
                    try:
                        for other in self._matching(brk, selectable, var_map):
                            backend.add_clause([-var, -other])
                    except ClauseContradiction as exc:
                        raise ContradictionError(
                            record.identity, f"breaks {brk}", brk
                        ) from exc

    @staticmethod
    def _probe(
        backend: SatBackend,
        selectable: dict[str, list[CandidateRecord]],
        required: set[str],
        var_map: dict[int, int],
    ) -> list[int]:
        assumptions: list[int] = []
        for identity, records in selectable.items():
            for record in records:
                var = var_map[id(record)]
                if backend.is_satisfiable(assumptions + [var]):
                    assumptions.append(var)
                    break
            else:
                if identity in required:
                    raise UnsatisfiableMandatoryError(identity)
                logger.debug("Leaving optional identity %r unselected", identity)
        return assumptions
