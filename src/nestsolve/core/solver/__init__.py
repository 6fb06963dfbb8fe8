"""SAT-based candidate selection and post-solve verification."""

from nestsolve.core.solver.backend import (
    BackendFactory,
    ClauseContradiction,
    PySATBackend,
    SatBackend,
    pysat_backend,
)
from nestsolve.core.solver.resolver import ConstraintSolver, Selection
from nestsolve.core.solver.verifier import ResultVerifier, VerificationReport

__all__ = [
    "BackendFactory",
    "ClauseContradiction",
    "ConstraintSolver",
    "PySATBackend",
    "ResultVerifier",
    "SatBackend",
    "Selection",
    "VerificationReport",
    "pysat_backend",
]
