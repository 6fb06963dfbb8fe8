"""Tests for YamlManifestParser.

Verifies:
    - JSON and YAML manifests decode to the same records.
    - Relation values accept strings, lists (alternatives) and null.
    - Nested entries accept plain strings and ``{file: ...}`` mappings.
    - Malformed content raises MalformedManifestError.
    - A missing manifest raises ManifestNotFoundError from ``read()``.
"""

from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path

import pytest

from nestsolve.core.candidates import (
    UNKNOWN_VERSION,
    NestedRef,
    OpaqueVersion,
    SemanticVersion,
)
from nestsolve.exceptions import MalformedManifestError, ManifestNotFoundError, ParseError
from nestsolve.parsers import YamlManifestParser


def _parse(text: str, **kwargs):
    return YamlManifestParser(**kwargs).parse(io.BytesIO(text.encode()), source="test")


class TestParse:
    """Tests for successful parsing."""

    def test_yaml_manifest(self) -> None:
        records = _parse(
            "schema_version: 1\n"
            "id: web-scraper\n"
            "version: 1.3.0\n"
            "depends:\n"
            "  http-core: '>=2.0 <3.0'\n"
            "recommends:\n"
            "  cache-layer:\n"
            "breaks:\n"
            "  legacy: '*'\n"
            "conflicts:\n"
            "  html-lite: ['<1.0', '>=4.0']\n"
            "nested:\n"
            "  - libs/http-core.zip\n"
            "  - file: libs/cache-layer.zip\n"
        )
        assert len(records) == 1
        rec = records[0]
        assert rec.identity == "web-scraper"
        assert rec.version == SemanticVersion.parse("1.3.0")
        assert rec.schema_version == 1
        assert [str(c) for c in rec.depends] == ["http-core >=2.0 <3.0"]
        assert rec.recommends[0].predicate.is_wildcard
        assert [str(c) for c in rec.breaks] == ["legacy *"]
        assert str(rec.conflicts[0]) == "html-lite <1.0 || >=4.0"
        assert rec.nested == (NestedRef("libs/http-core.zip"), NestedRef("libs/cache-layer.zip"))
        assert rec.depth == 0
        assert rec.origin is None

    def test_json_manifest(self) -> None:
        records = _parse(json.dumps({"id": "alpha", "version": "2.0", "depends": {"beta": "^1"}}))
        assert records[0].identity == "alpha"
        assert records[0].depends[0].identity == "beta"

    def test_list_of_candidates(self) -> None:
        records = _parse(json.dumps([{"id": "alpha", "version": "1"}, {"id": "beta", "version": "2"}]))
        assert [r.identity for r in records] == ["alpha", "beta"]

    def test_schema_version_defaults_to_zero(self) -> None:
        assert _parse("id: alpha\nversion: 1.0.0\n")[0].schema_version == 0

    def test_opaque_version(self) -> None:
        assert _parse("id: alpha\nversion: nightly\n")[0].version == OpaqueVersion("nightly")

    def test_numeric_yaml_version_kept_as_text(self) -> None:
        assert _parse("id: alpha\nversion: 2\n")[0].version_key == "2"

    def test_missing_id_left_for_validation(self) -> None:
        assert _parse("version: 1.0.0\n")[0].identity == ""

    def test_unknown_version_allowed_when_configured(self) -> None:
        records = _parse("id: alpha\n", allow_unknown_version=True)
        assert records[0].version == UNKNOWN_VERSION

    def test_empty_document(self) -> None:
        assert _parse("") == []


class TestMalformed:
    """Tests for content that must be rejected."""

    @pytest.mark.parametrize(
        "text",
        [
            "id: [unclosed\n",
            "- just a string\n",
            "id: alpha\n",
            "id: 12\nversion: 1.0.0\n",
            "id: alpha\nversion: 1.0.0\ndepends: [beta]\n",
            "id: alpha\nversion: 1.0.0\ndepends:\n  beta: '=>1'\n",
            "id: alpha\nversion: 1.0.0\ndepends:\n  beta: []\n",
            "id: alpha\nversion: 1.0.0\nnested: libs/x.zip\n",
            "id: alpha\nversion: 1.0.0\nnested:\n  - path: x.zip\n",
            "id: alpha\nversion: 1.0.0\nschema_version: one\n",
            "id: alpha\nversion: 1.10\n",
            "id: alpha\nversion: 1.0.0\ndepends:\n  beta: 1.10\n",
            "id: alpha\nversion: 1.0.0\nconflicts:\n  beta: ['1.0.0', 2.5]\n",
        ],
    )
    def test_rejected(self, text: str) -> None:
        with pytest.raises(MalformedManifestError) as exc_info:
            _parse(text)
        assert isinstance(exc_info.value, ParseError)
        assert "test" in str(exc_info.value)

    def test_unquoted_decimal_version_names_the_fix(self) -> None:
        """``1.10`` would otherwise load as the float 1.1."""
        with pytest.raises(MalformedManifestError, match="must be a quoted string"):
            _parse("id: alpha\nversion: 1.10\n")

    def test_quoted_decimal_version_kept(self) -> None:
        records = _parse("id: alpha\nversion: '1.10'\ndepends:\n  beta: '1.10'\n")
        assert records[0].version_key == "1.10"
        assert str(records[0].depends[0]) == "beta 1.10"


class TestRead:
    """Tests for ManifestParser.read() against directory and archive roots."""

    def test_read_from_directory(self, tmp_path: Path) -> None:
        (tmp_path / "manifest.json").write_text(json.dumps({"id": "alpha", "version": "1"}))
        records = YamlManifestParser().read(tmp_path, "manifest.json")
        assert records[0].identity == "alpha"

    def test_read_from_archive(self, tmp_path: Path) -> None:
        archive_path = tmp_path / "alpha.zip"
        with zipfile.ZipFile(archive_path, "w") as archive:
            archive.writestr("manifest.json", json.dumps({"id": "alpha", "version": "1"}))
        with zipfile.ZipFile(archive_path) as archive:
            records = YamlManifestParser().read(zipfile.Path(archive), "manifest.json")
        assert records[0].identity == "alpha"

    def test_missing_in_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestNotFoundError):
            YamlManifestParser().read(tmp_path, "manifest.json")

    def test_missing_in_archive(self, tmp_path: Path) -> None:
        archive_path = tmp_path / "empty.zip"
        with zipfile.ZipFile(archive_path, "w") as archive:
            archive.writestr("readme.txt", "hi")
        with zipfile.ZipFile(archive_path) as archive:
            with pytest.raises(ManifestNotFoundError):
                YamlManifestParser().read(zipfile.Path(archive), "manifest.json")
