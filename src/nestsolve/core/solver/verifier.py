"""Post-solve verification of a candidate selection.

The SAT solver only guarantees clause satisfaction. The verifier re-checks
the chosen selection against every declared relation and turns violations
into readable lines:

- hard: missing mandatory identities, unmet ``depends``, present ``breaks``;
- soft: unmet ``recommends``, present ``conflicts``.

Lines are produced in a fixed order (identities sorted, relations in
declaration order), so verifying the same selection twice yields identical
reports.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from nestsolve.core.candidates import CandidateRecord, Constraint
from nestsolve.exceptions import VerificationError


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of verifying a selection.

    Attributes:
        missing: Mandatory identities absent from the selection, sorted.
        hard: Hard violation lines.
        soft: Soft violation lines.
    """

    missing: tuple[str, ...] = ()
    hard: tuple[str, ...] = ()
    soft: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        """True if the selection has no hard violations."""
        return not self.missing and not self.hard

    @property
    def message(self) -> str:
        """Render the report; hard lines come before soft lines."""
        if self.missing:
            text = "Missing candidates: " + ", ".join(self.missing)
            if self.hard or self.soft:
                text += "\n" + "\n".join(self.hard + self.soft)
            return text
        if self.hard:
            return "Unsatisfied dependencies!\n" + "\n".join(self.hard + self.soft)
        if self.soft:
            return "Non-mandatory unsatisfied dependencies!\n" + "\n".join(self.soft)
        return ""

    def raise_for_errors(self) -> None:
        """Raise ``VerificationError`` if the report has hard violations."""
        if not self.ok:
            raise VerificationError(self.message, report=self)


def _matches(constraint: Constraint, selection: Mapping[str, CandidateRecord]) -> bool:
    selected = selection.get(constraint.identity)
    return selected is not None and constraint.matches(selected.version)


class ResultVerifier:
    """Re-validate a selection against declared constraints."""

    def verify(
        self,
        selection: Mapping[str, CandidateRecord],
        mandatory: Iterable[str] = (),
    ) -> VerificationReport:
        """Check *selection* and return a report of every violation.

        Args:
            selection: Identity to selected record.
            mandatory: Identities that must be present.

        Returns:
            A ``VerificationReport``. Call ``raise_for_errors()`` on it to
            fail on hard violations.
        """
        missing = tuple(sorted(set(mandatory) - set(selection)))
        hard: list[str] = []
        soft: list[str] = []

        for identity in sorted(selection):
            record = selection[identity]
            for dep in record.depends:
                if not _matches(dep, selection):
                    hard.append(self._line(record, "depends on", dep, selection, True))
            for rec in record.recommends:
                if not _matches(rec, selection):
                    soft.append(self._line(record, "recommends", rec, selection, True))
            for brk in record.breaks:
                if _matches(brk, selection):
                    hard.append(self._line(record, "breaks", brk, selection, False))
            for con in record.conflicts:
                if _matches(con, selection):
                    soft.append(self._line(record, "conflicts with", con, selection, False))

        return VerificationReport(missing=missing, hard=tuple(hard), soft=tuple(soft))

    @staticmethod
    def _line(
        record: CandidateRecord,
        relation: str,
        constraint: Constraint,
        selection: Mapping[str, CandidateRecord],
        wanted: bool,
    ) -> str:
        selected = selection.get(constraint.identity)
        if wanted:
            found = "which is missing" if selected is None else f"but {selected} is selected"
        else:
            found = f"but {selected} is selected"
        return f" - {record} {relation} {constraint}, {found}!"
