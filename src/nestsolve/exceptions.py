"""nestsolve exception hierarchy.

All public exceptions inherit from NestsolveError, giving callers a single
base class to catch when they want to handle any nestsolve-specific failure
without swallowing unrelated errors.
"""

from __future__ import annotations

from typing import Any


class NestsolveError(Exception):
    """Base exception for all nestsolve errors."""


class DiscoveryError(NestsolveError):
    """Raised when candidate discovery fails.

    Covers malformed manifests, invalid identities, failed nested-archive
    materialization, and timeouts. When several concurrent discovery units
    fail, every underlying exception is kept in ``errors`` so the caller
    sees all problems at once.
    """

    def __init__(self, message: str, errors: list[BaseException] | None = None) -> None:
        self.errors: list[BaseException] = list(errors or [])
        if len(self.errors) > 1:
            details = "\n".join(f" - {err}" for err in self.errors)
            message = f"{message}\n{details}"
        elif self.errors:
            message = f"{message}: {self.errors[0]}"
        super().__init__(message)


class ParseError(NestsolveError):
    """Raised when a candidate manifest cannot be read."""


class MalformedManifestError(ParseError):
    """Raised when a manifest exists but cannot be decoded or validated."""


class ManifestNotFoundError(ParseError):
    """Raised when a manifest is absent from a candidate root.

    Not fatal: discovery falls back to the next manifest name, and yields
    zero candidates when none is present.
    """


class ResolutionError(NestsolveError):
    """Raised when dependency resolution fails.

    Covers unsatisfiable version constraints, duplicate user-provided
    versions, and conflicts that the constraint solver cannot resolve.
    """


class DuplicateVersionError(ResolutionError):
    """Raised when two explicitly provided versions share one identity."""

    def __init__(self, identity: str, origins: list[str]) -> None:
        self.identity = identity
        self.origins = origins
        super().__init__(
            f"Duplicate versions for identity {identity!r}: {', '.join(origins)}"
        )


DuplicateProvidedVersionError = DuplicateVersionError


class UnsatisfiableMandatoryError(ResolutionError):
    """Raised when a mandatory identity has no candidate that can be selected."""

    def __init__(self, identity: str, message: str | None = None) -> None:
        self.identity = identity
        super().__init__(
            message
            or f"Could not resolve candidate collection including mandatory identity {identity!r}"
        )


class ContradictionError(UnsatisfiableMandatoryError):
    """Raised when the clause encoding is contradictory on its own.

    Only forced (unit) literals can contradict at encoding time, and those
    come from mandatory identities, hence the parent class.
    """

    def __init__(self, identity: str, detail: str, constraint: Any = None) -> None:
        self.constraint = constraint
        super().__init__(
            identity,
            f"Could not resolve valid candidate collection (at: {identity} {detail})",
        )


class ResolutionTimeoutError(ResolutionError):
    """Raised when the solver exceeds its time limit."""


class VerificationError(ResolutionError):
    """Raised when the selected candidates violate a hard constraint.

    The ``report`` attribute carries the full ``VerificationReport``.
    """

    def __init__(self, message: str, report: Any = None) -> None:
        self.report = report
        super().__init__(message)
