"""Tests for ResultVerifier and VerificationReport rendering."""

from __future__ import annotations

import pytest

from nestsolve.core.solver import ResultVerifier, VerificationReport
from nestsolve.exceptions import ResolutionError, VerificationError


def _selection(*records):
    return {r.identity: r for r in records}


class TestHardViolations:
    """Unmet depends, present breaks and missing mandatory identities."""

    def test_missing_dependency(self, make_record) -> None:
        selection = _selection(make_record("app", "1.0.0", depends={"lib": ">=1.0"}))
        report = ResultVerifier().verify(selection)
        assert not report.ok
        assert report.hard == (" - app@1.0.0 depends on lib >=1.0, which is missing!",)
        assert report.message.startswith("Unsatisfied dependencies!\n")

    def test_wrong_dependency_version(self, make_record) -> None:
        selection = _selection(
            make_record("app", "1.0.0", depends={"lib": ">=2.0"}),
            make_record("lib", "1.0.0"),
        )
        report = ResultVerifier().verify(selection)
        assert report.hard == (
            " - app@1.0.0 depends on lib >=2.0, but lib@1.0.0 is selected!",
        )

    def test_breaks_present(self, make_record) -> None:
        selection = _selection(
            make_record("app", "1.0.0", breaks={"lib": "*"}),
            make_record("lib", "1.0.0"),
        )
        report = ResultVerifier().verify(selection)
        assert report.hard == (" - app@1.0.0 breaks lib *, but lib@1.0.0 is selected!",)

    def test_missing_mandatory(self, make_record) -> None:
        report = ResultVerifier().verify(_selection(make_record("app", "1.0.0")), {"zed", "lib"})
        assert report.missing == ("lib", "zed")
        assert report.message == "Missing candidates: lib, zed"

    def test_raise_for_errors(self, make_record) -> None:
        report = ResultVerifier().verify(
            _selection(make_record("app", "1.0.0", depends={"lib": "*"}))
        )
        with pytest.raises(VerificationError) as exc_info:
            report.raise_for_errors()
        assert isinstance(exc_info.value, ResolutionError)
        assert exc_info.value.report is report


class TestSoftViolations:
    """Unmet recommends and present conflicts never fail."""

    def test_recommends_and_conflicts(self, make_record) -> None:
        selection = _selection(
            make_record("app", "1.0.0", recommends={"cache": "*"}, conflicts={"lib": "<2"}),
            make_record("lib", "1.0.0"),
        )
        report = ResultVerifier().verify(selection)
        assert report.ok
        assert report.soft == (
            " - app@1.0.0 recommends cache *, which is missing!",
            " - app@1.0.0 conflicts with lib <2, but lib@1.0.0 is selected!",
        )
        assert report.message.startswith("Non-mandatory unsatisfied dependencies!\n")
        report.raise_for_errors()

    def test_hard_lines_precede_soft_lines(self, make_record) -> None:
        selection = _selection(
            make_record("app", "1.0.0", recommends={"cache": "*"}),
            make_record("lib", "1.0.0", depends={"util": "*"}),
        )
        lines = ResultVerifier().verify(selection).message.splitlines()
        assert lines == [
            "Unsatisfied dependencies!",
            " - lib@1.0.0 depends on util *, which is missing!",
            " - app@1.0.0 recommends cache *, which is missing!",
        ]


class TestReport:
    """Tests for report determinism and the clean case."""

    def test_clean_selection(self, make_record) -> None:
        selection = _selection(
            make_record("app", "1.0.0", depends={"lib": "^1.0"}),
            make_record("lib", "1.4.0"),
        )
        report = ResultVerifier().verify(selection, {"app"})
        assert report == VerificationReport()
        assert report.message == ""

    def test_verifying_twice_is_identical(self, make_record) -> None:
        selection = _selection(
            make_record("beta", "1.0.0", depends={"x": "*"}, conflicts={"alpha": "*"}),
            make_record("alpha", "1.0.0", depends={"y": "*"}, recommends={"z": "*"}),
        )
        verifier = ResultVerifier()
        assert verifier.verify(selection, {"q"}) == verifier.verify(selection, {"q"})
