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
test-all-versions (tav) support.

`test-all-versions <https://github.com/watson/test-all-versions>`_ runs a
plugin's test suite against every version of the instrumented package listed
in the plugin's ``.tav.yml``:

.. code:: yaml

    express:
      versions: "^4.0.0"
      commands: npm run test
    ioredis:
      - versions: ">=2 <4"
        commands: npm run test
      - versions: "^4.0.0"
        commands: npm run test

When a plugin has no ``.tav.yml`` its tested range is the devDependency it
pins in ``package.json``.
"""

import os
from typing import Any, Dict, Iterable, Optional

import yaml

from opentelemetry.contrib_stats.errors import ParseError
from opentelemetry.contrib_stats.models import TavInfo
from opentelemetry.contrib_stats.policy import Policy
from opentelemetry.contrib_stats.ranges import valid_range

TAV_CONFIG_FILE = ".tav.yml"
TAV_PACKAGE = "test-all-versions"


def load_tav_config(root: str) -> Optional[Dict[str, Any]]:
    """Parse ``.tav.yml`` under ``root``; ``None`` when there is none."""
    try:
        with open(
            os.path.join(root, TAV_CONFIG_FILE), encoding="utf-8"
        ) as config_file:
            return yaml.safe_load(config_file)
    except FileNotFoundError:
        return None
    except yaml.YAMLError as exc:
        raise ParseError(
            f"Invalid {TAV_CONFIG_FILE} in {root}: {exc}"
        ) from exc


def check_tav(root: str, package_json: Dict[str, Any]) -> TavInfo:
    config = load_tav_config(root)
    tav_version = (package_json.get("devDependencies") or {}).get(TAV_PACKAGE)
    script = (package_json.get("scripts") or {}).get(TAV_PACKAGE)
    return TavInfo(
        valid=bool(config and tav_version and script),
        config=config,
        tav_version=tav_version,
        script=script,
    )


def _entry_versions(entry: Any) -> Optional[str]:
    if not isinstance(entry, dict):
        return None
    versions = entry.get("versions")
    # newer tav releases accept {include: ..., mode: ...}
    if isinstance(versions, dict):
        versions = versions.get("include")
    if isinstance(versions, str) and versions:
        return versions
    return None


def get_tested_versions_from_tav_config(
    package_name: str, config: Dict[str, Any]
) -> str:
    if not isinstance(config, dict):
        raise ParseError(f"{TAV_CONFIG_FILE} must hold a mapping: {config!r}")
    package_config = config.get(package_name)
    versions = _entry_versions(package_config)
    if versions:
        return versions
    if isinstance(package_config, list) and package_config:
        all_versions = [_entry_versions(entry) for entry in package_config]
        if all(all_versions):
            return " || ".join(versions.strip() for versions in all_versions)
    raise ParseError(
        f"Unable to parse tested versions of {package_name} from "
        f"{TAV_CONFIG_FILE}: {config!r}"
    )


def get_tested_versions(
    package_name: Optional[str],
    package_json: Dict[str, Any],
    tav_config: Optional[Dict[str, Any]],
    dependency_fallbacks: Optional[Iterable[str]] = None,
) -> str:
    """Range of ``package_name`` versions the plugin is tested against."""
    if dependency_fallbacks is None:
        dependency_fallbacks = Policy.default().dependency_fallbacks
    if not package_name:
        raise ParseError("No instrumented package to look up tested versions")

    if tav_config:
        semver_range = get_tested_versions_from_tav_config(
            package_name, tav_config
        )
    else:
        semver_range = (package_json.get("devDependencies") or {}).get(
            package_name
        )
        if not semver_range and package_name in dependency_fallbacks:
            semver_range = (package_json.get("dependencies") or {}).get(
                package_name
            )
        if not semver_range:
            raise ParseError(f"No tested version for {package_name}")

    # dependency specifiers such as "latest" or "file:..." are not ranges
    if valid_range(semver_range) is None:
        raise ParseError(f"Invalid range {semver_range!r} for {package_name}")
    return semver_range
