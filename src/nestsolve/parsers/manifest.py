"""Parser for YAML/JSON candidate manifests.

A manifest describes one candidate, or a list of candidates:

.. code-block:: yaml

    schema_version: 1
    id: web-scraper
    version: "1.3.0"
    depends:
      http-core: ">=2.0 <3.0"
    recommends:
      cache-layer: "*"
    breaks:
      legacy-scraper: "*"
    conflicts:
      html-lite: ["<1.0", ">=4.0"]
    nested:
      - libs/http-core.zip
      - file: libs/cache-layer.zip

Relation values are predicate strings; a list of strings means "any of"
and is joined with ``||``. JSON manifests load through the same YAML loader.
"""

from __future__ import annotations

from typing import IO, Any

import yaml

from nestsolve.core.candidates import (
    UNKNOWN_VERSION,
    CandidateRecord,
    Constraint,
    NestedRef,
    VersionPredicate,
    parse_version,
)
from nestsolve.exceptions import MalformedManifestError
from nestsolve.parsers.base import ManifestParser

_RELATIONS = ("depends", "recommends", "breaks", "conflicts")


class YamlManifestParser(ManifestParser):
    """Parse manifests with ``yaml.safe_load``.

    Args:
        allow_unknown_version: Accept candidates without a ``version`` key,
            giving them the ``unknown`` sentinel version.
    """

    def __init__(self, allow_unknown_version: bool = False) -> None:
        self.allow_unknown_version = allow_unknown_version

    def parse(self, stream: IO[bytes], source: str = "<stream>") -> list[CandidateRecord]:
        try:
            data = yaml.safe_load(stream)
        except yaml.YAMLError as exc:
            raise MalformedManifestError(f"Invalid manifest at {source}: {exc}") from exc

        if data is None:
            return []
        entries = data if isinstance(data, list) else [data]

        records: list[CandidateRecord] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise MalformedManifestError(
                    f"Invalid manifest at {source}: entry {index} is not a mapping"
                )
            try:
                records.append(self._parse_entry(entry))
            except (TypeError, ValueError) as exc:
                raise MalformedManifestError(f"Invalid manifest at {source}: {exc}") from exc
        return records

    def _parse_entry(self, entry: dict[str, Any]) -> CandidateRecord:
        identity = entry.get("id")
        if identity is not None and not isinstance(identity, str):
            raise TypeError(f"'id' must be a string, got {type(identity).__name__}")

        raw_version = entry.get("version")
        if raw_version is None:
            if not self.allow_unknown_version:
                raise ValueError(f"candidate {identity!r} declares no version")
            version = UNKNOWN_VERSION
        else:
            version = parse_version(_version_text("version", raw_version))

        schema_version = entry.get("schema_version", 0)
        if not isinstance(schema_version, int) or isinstance(schema_version, bool):
            raise TypeError("'schema_version' must be an integer")

        relations = {name: _parse_relation(name, entry.get(name)) for name in _RELATIONS}
        return CandidateRecord(
            identity=identity or "",
            version=version,
            nested=_parse_nested(entry.get("nested")),
            schema_version=schema_version,
            **relations,
        )


def _parse_relation(name: str, value: Any) -> tuple[Constraint, ...]:
    if value is None:
        return ()
    if not isinstance(value, dict):
        raise TypeError(f"{name!r} must be a mapping of identity to version predicate")

    constraints: list[Constraint] = []
    for target, predicate in value.items():
        if isinstance(predicate, list):
            if not predicate:
                raise ValueError(f"{name}.{target}: empty predicate list")
            raw = " || ".join(_version_text(f"{name}.{target}", p) for p in predicate)
        elif predicate is None:
            raw = "*"
        else:
            raw = _version_text(f"{name}.{target}", predicate)
        constraints.append(Constraint(identity=str(target), predicate=VersionPredicate(raw)))
    return tuple(constraints)


def _parse_nested(value: Any) -> tuple[NestedRef, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise TypeError("'nested' must be a list")

    refs: list[NestedRef] = []
    for item in value:
        if isinstance(item, str):
            refs.append(NestedRef(item))
        elif isinstance(item, dict) and isinstance(item.get("file"), str):
            refs.append(NestedRef(item["file"]))
        else:
            raise TypeError(f"invalid nested entry: {item!r}")
    return tuple(refs)


def _version_text(where: str, value: Any) -> str:
    # YAML reads an unquoted 1.10 as the float 1.1.
    if isinstance(value, float):
        raise TypeError(f"{where}: {value!r} must be a quoted string, not a number")
    return str(value)
