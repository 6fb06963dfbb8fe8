"""Candidate versions and version predicates.

A candidate version is a tagged variant:

- ``SemanticVersion`` -- dotted numeric components with optional pre-release
  and build metadata. Totally ordered against other semantic versions.
- ``OpaqueVersion`` -- any other string. Equal only to an identical string
  and never ordered.

Predicates follow npm/SemVer conventions: exact match (``==``, ``=`` or a
bare version), not-equal (``!=``), ranges (``>=``, ``<=``, ``>``, ``<``),
caret (``^``), tilde (``~``), wildcard (``*``). Atoms separated by commas or
whitespace must all hold; alternatives separated by ``||`` are ORed.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from typing import Union


# ---------------------------------------------------------------------------
# Version variants
# ---------------------------------------------------------------------------

_SEMVER_RE = re.compile(
    r"^(?P<core>(?:0|[1-9]\d*)(?:\.(?:0|[1-9]\d*))*)"
    r"(?:-(?P<pre>[0-9A-Za-z\-.]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z\-.]+))?$"
)


def _prerelease_key(pre: tuple[str, ...]) -> tuple[tuple[int, int | str], ...]:
    # SemVer 11.4: numeric identifiers sort numerically and before alphanumerics.
    return tuple((0, int(p)) if p.isdigit() else (1, p) for p in pre)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """A parsed, comparable version such as ``1.2.3-beta.1+build.5``.

    Missing trailing components compare as zero, so ``1.2`` equals
    ``1.2.0``. Build metadata does not affect precedence or equality, and a
    pre-release sorts below its associated normal version.

    Attributes:
        components: Numeric dotted components (at least one).
        prerelease: Dot-separated pre-release identifiers, possibly empty.
        build: Build metadata, or None.
        raw: The string the version was parsed from.
    """

    components: tuple[int, ...]
    prerelease: tuple[str, ...] = ()
    build: str | None = None
    raw: str = ""

    @classmethod
    def parse(cls, text: str) -> SemanticVersion:
        """Parse a semantic version string.

        Raises:
            ValueError: If the string does not match semantic version format.
        """
        m = _SEMVER_RE.match(text.strip())
        if not m:
            raise ValueError(f"Invalid semantic version: {text!r}")
        pre = m.group("pre")
        return cls(
            components=tuple(int(c) for c in m.group("core").split(".")),
            prerelease=tuple(pre.split(".")) if pre else (),
            build=m.group("build"),
            raw=text.strip(),
        )

    def _key(self) -> tuple:
        core = list(self.components)
        while len(core) > 1 and core[-1] == 0:
            core.pop()
        return (tuple(core), not self.prerelease, _prerelease_key(self.prerelease))

    def component(self, index: int) -> int:
        """Return the component at *index*, zero when absent."""
        return self.components[index] if index < len(self.components) else 0

    @property
    def friendly_string(self) -> str:
        if self.raw:
            return self.raw
        text = ".".join(str(c) for c in self.components)
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.friendly_string


@dataclass(frozen=True)
class OpaqueVersion:
    """A version string that is not semantic, e.g. ``"beta-snapshot"``.

    Comparison is identity of the raw string only; ordering operators are
    deliberately undefined.
    """

    raw: str

    @property
    def friendly_string(self) -> str:
        return self.raw

    def __str__(self) -> str:
        return self.raw


Version = Union[SemanticVersion, OpaqueVersion]

UNKNOWN_VERSION = OpaqueVersion("unknown")


def parse_version(text: str) -> Version:
    """Parse *text* as a semantic version, falling back to an opaque one.

    Raises:
        ValueError: If *text* is empty.
    """
    stripped = str(text).strip()
    if not stripped:
        raise ValueError("Version string is empty")
    try:
        return SemanticVersion.parse(stripped)
    except ValueError:
        return OpaqueVersion(stripped)


def is_comparable(a: Version, b: Version) -> bool:
    """Return True when *a* and *b* can be ordered against each other."""
    return isinstance(a, SemanticVersion) and isinstance(b, SemanticVersion)


# ---------------------------------------------------------------------------
# VersionPredicate: Declarative version requirement
# ---------------------------------------------------------------------------

_OPERATORS = ("==", "!=", ">=", "<=", "=", ">", "<", "^", "~")
_ORDERING_OPS = frozenset({">=", "<=", ">", "<", "^", "~"})
_ATOM_RE = re.compile(r"^(?P<op>==|!=|>=|<=|=|>|<|\^|~)?(?P<ver>[^\s,|<>=!^~]+)$")
_OP_SPACE_RE = re.compile(r"(==|!=|>=|<=|=|>|<|\^|~)\s+")


@dataclass(frozen=True)
class _Atom:
    op: str
    target: Version

    def matches(self, version: Version) -> bool:
        if self.op == "==":
            return _same(version, self.target)
        if self.op == "!=":
            return not _same(version, self.target)
        if not (isinstance(version, SemanticVersion) and isinstance(self.target, SemanticVersion)):
            return False

        target = self.target
        if self.op == ">=":
            return version >= target
        elif self.op == "<=":
            return version <= target
        elif self.op == ">":
            return version > target
        elif self.op == "<":
            return version < target
        elif self.op == "^":
            # Caret: same major, >= target. If major is 0, same major.minor.
            if target.component(0) == 0:
                return (
                    version.component(0) == 0
                    and version.component(1) == target.component(1)
                    and version >= target
                )
            return version.component(0) == target.component(0) and version >= target
        elif self.op == "~":
            return (
                version.component(0) == target.component(0)
                and version.component(1) == target.component(1)
                and version >= target
            )
        raise ValueError(f"Unknown operator: {self.op!r}")  # pragma: no cover


def _same(a: Version, b: Version) -> bool:
    if isinstance(a, SemanticVersion) and isinstance(b, SemanticVersion):
        return a == b
    return a.friendly_string == b.friendly_string


def _parse_atom(text: str) -> _Atom:
    m = _ATOM_RE.match(text)
    if not m:
        raise ValueError(f"Invalid constraint atom: {text!r}")
    op = m.group("op") or "=="
    if op == "=":
        op = "=="
    target = parse_version(m.group("ver"))
    if op in _ORDERING_OPS and not isinstance(target, SemanticVersion):
        raise ValueError(f"Operator {op!r} needs a semantic version, got {text!r}")
    return _Atom(op=op, target=target)


@dataclass(frozen=True)
class VersionPredicate:
    """A version predicate, analogous to npm constraint syntax.

    Examples: ``*``, ``1.2.0``, ``>=1.0 <2.0``, ``>=1.0.0,<2.0.0``,
    ``^1.4 || ^2.0``.

    Attributes:
        raw: The raw predicate string as authored.

    Raises:
        ValueError: If any atom cannot be parsed.
    """

    raw: str
    _alternatives: tuple[tuple[_Atom, ...], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        stripped = self.raw.strip()
        if not stripped:
            raise ValueError("Version predicate is empty")
        alternatives: list[tuple[_Atom, ...]] = []
        for alt in stripped.split("||"):
            alt = _OP_SPACE_RE.sub(r"\1", alt.strip())
            tokens = [t for t in re.split(r"[,\s]+", alt) if t]
            if not tokens:
                raise ValueError(f"Empty alternative in predicate {self.raw!r}")
            if tokens == ["*"]:
                alternatives.append(())
                continue
            alternatives.append(tuple(_parse_atom(t) for t in tokens))
        object.__setattr__(self, "_alternatives", tuple(alternatives))

    @property
    def is_wildcard(self) -> bool:
        return any(not alt for alt in self._alternatives)

    def matches(self, version: Version | str) -> bool:
        """Check whether *version* satisfies this predicate.

        Opaque versions only satisfy ``*`` and exact (in)equality atoms.
        """
        if isinstance(version, str):
            version = parse_version(version)
        return any(
            all(atom.matches(version) for atom in alt)
            for alt in self._alternatives
        )

    def __str__(self) -> str:
        return self.raw.strip()

    def __repr__(self) -> str:
        return f"VersionPredicate({self.raw!r})"


ANY_VERSION = VersionPredicate("*")
