"""nestsolve: Recursive candidate discovery and SAT-based version selection."""

from __future__ import annotations

__version__ = "0.1.0"

from nestsolve.core.pipeline import (  # noqa: E402
    ResolutionResult,
    resolve,
    resolve_candidates,
    resolve_from_finders,
)

__all__ = [
    "ResolutionResult",
    "__version__",
    "resolve",
    "resolve_candidates",
    "resolve_from_finders",
]
