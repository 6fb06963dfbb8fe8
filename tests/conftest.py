"""Shared fixtures for nestsolve tests.

Candidates are built on disk under ``tmp_path``: either as plain
directories holding a ``manifest.json``, or as zip archives that may embed
further zip archives at arbitrary entry paths.
"""

from __future__ import annotations

import io
import json
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from nestsolve.core.candidates import (
    CandidateRecord,
    CandidateSet,
    Constraint,
    Locator,
    VersionPredicate,
    parse_version,
)


def manifest(
    identity: str,
    version: str,
    **relations: Any,
) -> dict[str, Any]:
    """Build a manifest dict with ``schema_version`` 1."""
    data: dict[str, Any] = {"schema_version": 1, "id": identity, "version": version}
    data.update(relations)
    return data


def zip_bytes(
    content: dict[str, Any] | list[dict[str, Any]] | None,
    entries: dict[str, bytes] | None = None,
    manifest_name: str = "manifest.json",
) -> bytes:
    """Return the bytes of a zip holding *content* as its manifest.

    *entries* maps extra entry paths (typically nested archives) to bytes.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        if content is not None:
            archive.writestr(manifest_name, json.dumps(content))
        for name, data in (entries or {}).items():
            archive.writestr(name, data)
    return buffer.getvalue()


def record(
    identity: str,
    version: str,
    *,
    depth: int = 0,
    depends: dict[str, str] | None = None,
    recommends: dict[str, str] | None = None,
    breaks: dict[str, str] | None = None,
    conflicts: dict[str, str] | None = None,
    origin: str | None = None,
) -> CandidateRecord:
    """Convenience factory for located CandidateRecord instances."""

    def constraints(value: dict[str, str] | None) -> tuple[Constraint, ...]:
        return tuple(
            Constraint(target, VersionPredicate(pred)) for target, pred in (value or {}).items()
        )

    return CandidateRecord(
        identity=identity,
        version=parse_version(version),
        depends=constraints(depends),
        recommends=constraints(recommends),
        breaks=constraints(breaks),
        conflicts=constraints(conflicts),
        origin=Locator(Path(origin or f"/candidates/{identity}-{version}.zip")),
        depth=depth,
    )


def candidate_sets(*records: CandidateRecord) -> dict[str, CandidateSet]:
    """Group *records* into candidate sets keyed by identity."""
    sets: dict[str, CandidateSet] = {}
    for rec in records:
        sets.setdefault(rec.identity, CandidateSet(rec.identity)).add(rec)
    return sets


@pytest.fixture(scope="session")
def make_manifest() -> Callable[..., dict[str, Any]]:
    """The manifest dict factory."""
    return manifest


@pytest.fixture(scope="session")
def make_zip_bytes() -> Callable[..., bytes]:
    """The in-memory zip factory, for nested archives."""
    return zip_bytes


@pytest.fixture(scope="session")
def make_record() -> Callable[..., CandidateRecord]:
    """The CandidateRecord factory."""
    return record


@pytest.fixture(scope="session")
def make_sets() -> Callable[..., dict[str, CandidateSet]]:
    """The candidate set grouping helper."""
    return candidate_sets


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a candidate zip archive under ``tmp_path``."""

    def _make(
        name: str,
        content: dict[str, Any] | list[dict[str, Any]] | None,
        entries: dict[str, bytes] | None = None,
        manifest_name: str = "manifest.json",
    ) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(zip_bytes(content, entries, manifest_name))
        return path

    return _make


@pytest.fixture
def make_dir(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a candidate directory under ``tmp_path``."""

    def _make(
        name: str,
        content: dict[str, Any] | list[dict[str, Any]] | None,
        entries: dict[str, bytes] | None = None,
        manifest_name: str = "manifest.json",
    ) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        if content is not None:
            (root / manifest_name).write_text(json.dumps(content))
        for entry, data in (entries or {}).items():
            target = root / entry
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        return root

    return _make
