"""Narrow SAT capability used by the constraint solver.

The solver only needs cardinality constraints, plain clauses, satisfiability
checks under assumptions, and the last model. ``SatBackend`` captures that
surface so any CDCL/DPLL engine can be plugged in; ``PySATBackend`` is the
default and wraps Glucose3 from python-sat.

Literals use DIMACS conventions: variable ``v`` is the positive integer
``v``, its negation is ``-v``.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Optional

from pysat.card import CardEnc, EncType
from pysat.solvers import Solver

from nestsolve.exceptions import ResolutionTimeoutError


class ClauseContradiction(Exception):
    """Raised by a backend when a new clause is falsified at decision level 0."""


class SatBackend(ABC):
    """Abstract SAT capability.

    Implementations must raise ``ClauseContradiction`` from the ``add_*``
    methods when the added constraint cannot hold given the constraints
    already present, and ``ResolutionTimeoutError`` when a satisfiability
    check runs out of time.
    """

    @abstractmethod
    def add_at_most(self, lits: Sequence[int], k: int) -> None:
        """At most *k* of *lits* may be true."""

    @abstractmethod
    def add_exactly(self, lits: Sequence[int], k: int) -> None:
        """Exactly *k* of *lits* must be true."""

    @abstractmethod
    def add_clause(self, lits: Sequence[int]) -> None:
        """At least one of *lits* must be true."""

    @abstractmethod
    def is_satisfiable(self, assumptions: Sequence[int] = ()) -> bool:
        """Check satisfiability with *assumptions* temporarily forced true."""

    @abstractmethod
    def model(self) -> list[int]:
        """Return the model found by the last successful check."""

    def close(self) -> None:
        """Release solver resources."""

    def __enter__(self) -> SatBackend:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


BackendFactory = Callable[[int, Optional[float]], SatBackend]


class PySATBackend(SatBackend):
    """``SatBackend`` on top of a python-sat solver (Glucose3 by default).

    Args:
        num_vars: Number of problem variables; auxiliary variables from
            cardinality encodings are numbered above it.
        timeout: Seconds allowed across every satisfiability check made
            through this backend. None means unbounded.
        solver_name: python-sat solver identifier.
    """

    def __init__(
        self,
        num_vars: int,
        timeout: float | None = None,
        solver_name: str = "g3",
    ) -> None:
        self._solver = Solver(name=solver_name)
        self._top = num_vars
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._has_model = False

    def _add(self, clause: list[int]) -> None:
        if not self._solver.add_clause(clause, no_return=False):
            raise ClauseContradiction(clause)

    def _add_cardinality(self, cnf_clauses: list[list[int]], nv: int) -> None:
        self._top = max(self._top, nv)
        for clause in cnf_clauses:
            self._add(clause)

    @staticmethod
    def _encoding(k: int) -> int:
        return EncType.pairwise if k == 1 else EncType.seqcounter

    def add_at_most(self, lits: Sequence[int], k: int) -> None:
        lits = list(lits)
        if len(lits) <= k:
            return
        cnf = CardEnc.atmost(lits=lits, bound=k, top_id=self._top, encoding=self._encoding(k))
        self._add_cardinality(cnf.clauses, cnf.nv)

    def add_exactly(self, lits: Sequence[int], k: int) -> None:
        lits = list(lits)
        if len(lits) < k:
            raise ClauseContradiction(lits)
        if k == 1:
            self._add(lits)
            self.add_at_most(lits, 1)
            return
        cnf = CardEnc.equals(lits=lits, bound=k, top_id=self._top, encoding=self._encoding(k))
        self._add_cardinality(cnf.clauses, cnf.nv)

    def add_clause(self, lits: Sequence[int]) -> None:
        self._add(list(lits))

    def is_satisfiable(self, assumptions: Sequence[int] = ()) -> bool:
        self._has_model = False
        if self._deadline is None:
            result = self._solver.solve(assumptions=list(assumptions))
        else:
            remaining = self._deadline - time.monotonic()
            if remaining <= 0:
                raise ResolutionTimeoutError("Candidate collection took too long to be resolved")
            timer = threading.Timer(remaining, self._solver.interrupt)
            timer.start()
            try:
                result = self._solver.solve_limited(
                    assumptions=list(assumptions), expect_interrupt=True
                )
            finally:
                timer.cancel()
                self._solver.clear_interrupt()
            if result is None:
                raise ResolutionTimeoutError("Candidate collection took too long to be resolved")
        self._has_model = bool(result)
        return self._has_model

    def model(self) -> list[int]:
        if not self._has_model:
            raise RuntimeError("No model available: last check was not satisfiable")
        return list(self._solver.get_model() or [])

    def close(self) -> None:
        self._solver.delete()


def pysat_backend(num_vars: int, timeout: float | None = None) -> SatBackend:
    """Default ``BackendFactory``."""
    return PySATBackend(num_vars, timeout=timeout)
