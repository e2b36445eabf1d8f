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
Which questions the loader may ask about which plugin.

A handful of instrumentations do not fit the conventions the loader relies
on: ``aws-lambda`` instruments the Lambda runtime rather than an npm package,
``aws-sdk`` keeps its supported range in ``.tav.yml``, and so on. Those
exceptions, together with the README overrides and package renames, live in
one table, :data:`DEFAULT_POLICY`, which can be extended from a YAML file
with the same shape:

.. code:: yaml

    exclusions:
      supported_versions:
        - "@opentelemetry/instrumentation-foo"
    readme_overrides:
      - pattern: "Foo `\\^1.0.0`"
        range: "^1.0.0"
    package_renames:
      foo-core: "@foo/core"
    dependency_fallbacks:
      - foo
"""

import re
from enum import Enum
from functools import lru_cache
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Pattern,
    Tuple,
    Union,
)

import yaml

from opentelemetry.contrib_stats.errors import PolicyError
from opentelemetry.contrib_stats.ranges import valid_range


class Capability(Enum):
    SUPPORTED_VERSIONS = "supported_versions"
    INSTRUMENTED_PACKAGE_NAME = "instrumented_package_name"
    FETCH_STATS = "fetch_stats"


DEFAULT_POLICY = {
    "exclusions": {
        "supported_versions": [
            "@opentelemetry/instrumentation-aws-lambda",
            # supported range is only declared in .tav.yml
            "@opentelemetry/instrumentation-aws-sdk",
            "@opentelemetry/instrumentation-bunyan",
            "@opentelemetry/instrumentation-dns",
            "@opentelemetry/instrumentation-net",
        ],
        "instrumented_package_name": [
            "@opentelemetry/instrumentation-aws-lambda",
        ],
        "fetch_stats": [],
    },
    # READMEs without a parsable "Supported Versions" section
    "readme_overrides": [
        {"pattern": r"@hapi/hapi `\^17.0.0`", "range": "^17.0.0"},
        {"pattern": r"Koa `\^2.0.0`", "range": "^2.0.0"},
        {"pattern": r"- `'>=3.3 <4`", "range": ">=3.3 <4"},
        {"pattern": r"pg\): `7\.x`, `8\.\*`", "range": "7 || 8"},
        {"pattern": r"`1\.x`, `2\.x`, `3\.x`", "range": ">=1 <4"},
        {
            "pattern": r"Minimum required graphql version is `v14`",
            "range": ">=14",
        },
    ],
    "package_renames": {
        "nestjs-core": "@nestjs/core",
        "hapi": "@hapi/hapi",
    },
    # packages listed as a regular dependency instead of a devDependency
    "dependency_fallbacks": ["fastify"],
}

_POLICY_KEYS = frozenset(DEFAULT_POLICY)

ReadmeOverride = Tuple[Pattern, str]


def _capability(capability: Union[Capability, str]) -> Capability:
    if isinstance(capability, Capability):
        return capability
    try:
        return Capability(capability)
    except ValueError:
        raise PolicyError(f"Invalid key: {capability!r}") from None


def _names(table: str, names: Any) -> List[str]:
    if names is None:
        return []
    if not isinstance(names, (list, tuple, set, frozenset)) or not all(
        isinstance(name, str) for name in names
    ):
        raise PolicyError(f"{table} must be a list of names: {names!r}")
    return list(names)


def _table(table: str, value: Any) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise PolicyError(f"{table} must be a mapping: {value!r}")
    return value


def _compile_overrides(entries: Iterable[Mapping[str, str]]):
    if not isinstance(entries, (list, tuple)):
        raise PolicyError(f"readme_overrides must be a list: {entries!r}")
    overrides = []
    for entry in entries:
        try:
            pattern, semver_range = entry["pattern"], entry["range"]
        except (KeyError, TypeError):
            raise PolicyError(
                f"README override needs a pattern and a range: {entry!r}"
            ) from None
        if valid_range(semver_range) is None:
            raise PolicyError(
                f"README override for {pattern!r} has invalid range "
                f"{semver_range!r}"
            )
        try:
            overrides.append((re.compile(pattern), semver_range))
        except re.error as exc:
            raise PolicyError(
                f"Invalid README override pattern {pattern!r}: {exc}"
            ) from exc
    return tuple(overrides)


class Policy:
    """Exclusion and override tables consulted by the plugin loader."""

    def __init__(
        self,
        exclusions: Optional[Mapping[Capability, Iterable[str]]] = None,
        readme_overrides: Iterable[ReadmeOverride] = (),
        package_renames: Optional[Mapping[str, str]] = None,
        dependency_fallbacks: Iterable[str] = (),
    ):
        self.exclusions: Dict[Capability, FrozenSet[str]] = {
            capability: frozenset((exclusions or {}).get(capability, ()))
            for capability in Capability
        }
        self.readme_overrides: Tuple[ReadmeOverride, ...] = tuple(
            readme_overrides
        )
        self.package_renames: Dict[str, str] = dict(package_renames or {})
        self.dependency_fallbacks: FrozenSet[str] = frozenset(
            dependency_fallbacks
        )

    def should(
        self,
        instrumentation_name: Optional[str],
        capability: Union[Capability, str],
    ) -> bool:
        """Whether ``capability`` applies to the given instrumentation.

        Raises :class:`PolicyError` for an unknown capability.
        """
        return instrumentation_name not in self.exclusions[
            _capability(capability)
        ]

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, Any], base: Optional["Policy"] = None
    ) -> "Policy":
        """Build a policy from ``mapping``, extending ``base`` if given.

        Overrides from ``mapping`` are tried before the ones of ``base``.
        """
        unknown = set(mapping) - _POLICY_KEYS
        if unknown:
            raise PolicyError(
                f"Unknown policy tables: {', '.join(sorted(unknown))}"
            )
        exclusions = {
            capability: set(base.exclusions[capability]) if base else set()
            for capability in Capability
        }
        exclusion_table = _table("exclusions", mapping.get("exclusions"))
        for key, names in exclusion_table.items():
            exclusions[_capability(key)].update(
                _names(f"exclusions.{key}", names)
            )

        renames = dict(base.package_renames) if base else {}
        for name, package in _table(
            "package_renames", mapping.get("package_renames")
        ).items():
            if not isinstance(package, str):
                raise PolicyError(
                    f"package_renames.{name} must be a package name: "
                    f"{package!r}"
                )
            renames[name] = package

        return cls(
            exclusions=exclusions,
            readme_overrides=_compile_overrides(
                mapping.get("readme_overrides") or ()
            )
            + (base.readme_overrides if base else ()),
            package_renames=renames,
            dependency_fallbacks=set(
                _names(
                    "dependency_fallbacks", mapping.get("dependency_fallbacks")
                )
            )
            | (base.dependency_fallbacks if base else frozenset()),
        )

    @classmethod
    @lru_cache(maxsize=None)
    def default(cls) -> "Policy":
        return cls.from_mapping(DEFAULT_POLICY)

    @classmethod
    def load(cls, path, base: Optional["Policy"] = None) -> "Policy":
        """Extend ``base`` (the default policy) with a YAML policy file."""
        try:
            with open(path, encoding="utf-8") as policy_file:
                mapping = yaml.safe_load(policy_file)
        except (OSError, yaml.YAMLError) as exc:
            raise PolicyError(
                f"Unable to read policy file {path}: {exc}"
            ) from exc
        if mapping is None:
            mapping = {}
        if not isinstance(mapping, dict):
            raise PolicyError(f"Policy file {path} must hold a mapping")
        return cls.from_mapping(
            mapping, base=base if base is not None else cls.default()
        )
