# Copyright The OpenTelemetry Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
npm semantic-version ranges.

Instrumentation READMEs and ``.tav.yml`` files describe versions the way npm
does (``^1.2.0``, ``~4.1``, ``7.x || 8.*``, ``>=1 <4``, ``1.2 - 2``). Every
comparator set of such a range is expanded into primitive comparators
(``>=1.2.0 <2.0.0``) evaluated against :class:`SemVer` versions, which are
ordered as described in section 11 of https://semver.org.

Usage
-----

.. code:: python

    from opentelemetry.contrib_stats.ranges import parse_range, valid_range

    "2.3.0" in parse_range("^2.0.0")   # True
    valid_range("not a range")        # None

npm prerelease semantics are kept: ``1.3.0-rc.1`` is only matched by a set
that mentions a prerelease of ``1.3.0`` itself.
"""

import operator
import re
from functools import total_ordering
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

_SEMVER_RE = re.compile(
    r"^v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_PARTIAL_RE = re.compile(
    r"^v?(?P<major>\d+|[xX*])"
    r"(?:\.(?P<minor>\d+|[xX*])"
    r"(?:\.(?P<patch>\d+|[xX*])"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?"
    r"(?:\+[0-9A-Za-z.-]+)?)?)?$"
)
_COMPARATOR_RE = re.compile(r"^(?P<op><=|>=|<|>|=|~>|~|\^)?(?P<partial>.*)$")
_OPERATOR_SPACE_RE = re.compile(r"(<=|>=|<|>|=|~>|~|\^)\s+")
_HYPHEN_RE = re.compile(r"^(?P<low>\S+)\s+-\s+(?P<high>\S+)$")
_OR_RE = re.compile(r"\s*\|\|\s*")
_WILDCARDS = ("x", "X", "*")


class InvalidVersion(ValueError):
    """Raised for text that is not a semantic version."""


class InvalidRange(ValueError):
    """Raised for text that is not an npm version range."""


@total_ordering
class SemVer:
    """A semantic version; build metadata is accepted and ignored."""

    def __init__(
        self,
        major: int,
        minor: int,
        patch: int,
        prerelease: Sequence[str] = (),
    ):
        self.major = major
        self.minor = minor
        self.patch = patch
        self.prerelease = tuple(prerelease)

    @classmethod
    def parse(cls, text: str) -> "SemVer":
        match = (
            _SEMVER_RE.match(text.strip()) if isinstance(text, str) else None
        )
        if match is None:
            raise InvalidVersion(f"Invalid version {text!r}")
        pre = match.group("pre")
        return cls(
            int(match.group("major")),
            int(match.group("minor")),
            int(match.group("patch")),
            pre.split(".") if pre else (),
        )

    @property
    def release(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _key(self):
        # numeric identifiers sort before alphanumeric ones, and a release
        # sorts after every prerelease of itself
        return (
            self.release,
            not self.prerelease,
            tuple(
                (0, int(identifier), "")
                if identifier.isdigit()
                else (1, 0, identifier)
                for identifier in self.prerelease
            ),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text = f"{text}-{'.'.join(self.prerelease)}"
        return text

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


Comparator = Tuple[str, SemVer]

_OPERATORS: Dict[str, Callable[[SemVer, SemVer], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
}

# "<0.0.0" admits no version at all
_NOTHING: Comparator = ("<", SemVer(0, 0, 0))


class _Partial(NamedTuple):
    major: Optional[int]
    minor: Optional[int]
    patch: Optional[int]
    pre: Optional[str]


def _parse_partial(text: str) -> _Partial:
    match = _PARTIAL_RE.match(text)
    if match is None:
        raise InvalidRange(f"Invalid version {text!r}")
    parts: List[Optional[int]] = []
    for key in ("major", "minor", "patch"):
        value = match.group(key)
        if value is None or value in _WILDCARDS:
            break
        parts.append(int(value))
    pre = match.group("pre") if len(parts) == 3 else None
    parts.extend([None] * (3 - len(parts)))
    return _Partial(parts[0], parts[1], parts[2], pre)


def _version(major: int, minor: int, patch: int, pre: Optional[str] = None):
    text = f"{major}.{minor}.{patch}"
    if pre:
        text = f"{text}-{pre}"
    try:
        return SemVer.parse(text)
    except InvalidVersion as exc:
        raise InvalidRange(f"Invalid version {text!r}") from exc


def _lower(partial: _Partial) -> SemVer:
    return _version(
        partial.major,
        partial.minor or 0,
        partial.patch or 0,
        partial.pre,
    )


def _next_up(partial: _Partial) -> SemVer:
    """First version above a partial, e.g. ``1.2`` -> ``1.3.0``."""
    if partial.minor is None:
        return _version(partial.major + 1, 0, 0)
    return _version(partial.major, partial.minor + 1, 0)


def _expand(op: str, partial: _Partial) -> List[Comparator]:
    # pylint: disable=too-many-return-statements
    if partial.major is None:
        if op in ("<", ">"):
            return [_NOTHING]
        return []

    if op in ("", "="):
        if partial.patch is not None:
            return [("=", _lower(partial))]
        return [(">=", _lower(partial)), ("<", _next_up(partial))]

    if op in ("~", "~>"):
        return [(">=", _lower(partial)), ("<", _next_up(partial))]

    if op == "^":
        if partial.major > 0 or partial.minor is None:
            upper = _version(partial.major + 1, 0, 0)
        elif partial.minor > 0 or partial.patch is None:
            upper = _version(0, partial.minor + 1, 0)
        else:
            upper = _version(0, 0, partial.patch + 1)
        return [(">=", _lower(partial)), ("<", upper)]

    if op == ">=":
        return [(">=", _lower(partial))]

    if op == "<":
        return [("<", _lower(partial))]

    if partial.patch is None:
        # ">1.2" is ">=1.3.0" and "<=1.2" is "<1.3.0"
        return [(">=" if op == ">" else "<", _next_up(partial))]
    return [(op, _lower(partial))]


def _expand_hyphen(low: _Partial, high: _Partial) -> List[Comparator]:
    comparators = []
    if low.major is not None:
        comparators.append((">=", _lower(low)))
    if high.major is not None:
        if high.patch is None:
            comparators.append(("<", _next_up(high)))
        else:
            comparators.append(("<=", _lower(high)))
    return comparators


class ComparatorSet:
    """One ``||`` alternative of a range: every comparator must match."""

    def __init__(self, comparators: Sequence[Comparator]):
        self.comparators = tuple(comparators)

    def __contains__(self, version: SemVer) -> bool:
        if version.is_prerelease and not any(
            bound.is_prerelease and bound.release == version.release
            for _, bound in self.comparators
        ):
            return False
        return all(
            _OPERATORS[op](version, bound) for op, bound in self.comparators
        )

    def __str__(self) -> str:
        if not self.comparators:
            return "*"
        return " ".join(
            f"{'' if op == '=' else op}{bound}"
            for op, bound in self.comparators
        )


class VersionRange:
    """A parsed npm range, a union of :class:`ComparatorSet`."""

    def __init__(self, text: str, sets: Sequence[ComparatorSet]):
        self.text = text
        self.sets = tuple(sets)

    def __contains__(self, version) -> bool:
        if not isinstance(version, SemVer):
            try:
                version = SemVer.parse(version)
            except InvalidVersion:
                return False
        return any(version in comparator_set for comparator_set in self.sets)

    def __str__(self) -> str:
        return " || ".join(str(comparator_set) for comparator_set in self.sets)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.text!r})"


def _parse_set(text: str) -> ComparatorSet:
    hyphen = _HYPHEN_RE.match(text)
    if hyphen:
        return ComparatorSet(
            _expand_hyphen(
                _parse_partial(hyphen.group("low")),
                _parse_partial(hyphen.group("high")),
            )
        )
    comparators: List[Comparator] = []
    for token in text.split():
        match = _COMPARATOR_RE.match(token)
        comparators.extend(
            _expand(
                match.group("op") or "", _parse_partial(match.group("partial"))
            )
        )
    return ComparatorSet(comparators)


def parse_range(text: str) -> VersionRange:
    """Parse an npm range, raising :class:`InvalidRange` on bad syntax."""
    if not isinstance(text, str):
        raise InvalidRange(f"Expected a range string, got {text!r}")
    normalized = _OPERATOR_SPACE_RE.sub(r"\1", text.strip())
    return VersionRange(
        text, [_parse_set(part) for part in _OR_RE.split(normalized)]
    )


def valid_range(text) -> Optional[str]:
    """Return the normalized form of ``text`` or ``None`` when invalid."""
    try:
        return str(parse_range(text))
    except InvalidRange:
        return None


def satisfies(version: str, semver_range: str) -> bool:
    return version in parse_range(semver_range)
