"""Candidate manifest parsers."""

from nestsolve.parsers.base import LATEST_SCHEMA_VERSION, ManifestParser
from nestsolve.parsers.manifest import YamlManifestParser

__all__ = [
    "LATEST_SCHEMA_VERSION",
    "ManifestParser",
    "YamlManifestParser",
]
