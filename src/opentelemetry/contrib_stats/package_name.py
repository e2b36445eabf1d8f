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
Find the npm package an instrumentation instruments.

Most instrumentations are named after their target
(``@opentelemetry/instrumentation-express`` instruments ``express``); the
others are resolved from the first sentence of their README, which reads
``This module provides automatic instrumentation for the [`ioredis`]...``.
"""

import re
from logging import getLogger
from typing import Mapping, Optional

from opentelemetry.contrib_stats.errors import ParseError
from opentelemetry.contrib_stats.policy import Policy

_logger = getLogger(__name__)

_INSTRUMENTATION_NAME_RE = re.compile(r"@opentelemetry/instrumentation-(.*)$")
_THIS_MODULE_PROVIDES_RE = re.compile(r"This module provides.*", re.IGNORECASE)
_README_PACKAGE_RE = re.compile(
    r"This module provides(?: basic)? automatic instrumentation [\sa-z]+ "
    r"\[`([^\]`]+)",
    re.IGNORECASE,
)


def parse_package_from_instrumentation_name(
    instrumentation_name: str, renames: Optional[Mapping[str, str]] = None
) -> Optional[str]:
    if renames is None:
        renames = Policy.default().package_renames
    match = _INSTRUMENTATION_NAME_RE.search(instrumentation_name or "")
    package_part = match.group(1) if match else None
    if package_part in renames:
        return renames[package_part]
    if package_part and "-" not in package_part:
        return package_part
    _logger.info("No naive name for %s", instrumentation_name)
    return None


def parse_package_from_readme(readme: Optional[str]) -> Optional[str]:
    match = _README_PACKAGE_RE.search(readme or "")
    if not match:
        raise ParseError("Could not find instrumented package name in README")
    package = match.group(1)
    if not re.search(r"\s", package):
        return package
    provides = _THIS_MODULE_PROVIDES_RE.search(readme)
    _logger.info(
        "No readme name for %r", provides.group(0) if provides else None
    )
    return None


def get_instrumented_package_name(
    instrumentation_name: str,
    readme: Optional[str],
    renames: Optional[Mapping[str, str]] = None,
) -> str:
    """Resolve the package name, reading the README only when needed."""
    naive_name = parse_package_from_instrumentation_name(
        instrumentation_name, renames
    )
    if naive_name:
        return naive_name
    readme_name = parse_package_from_readme(readme)
    if readme_name:
        return readme_name
    raise ParseError(
        f"Unable to parse package name for {instrumentation_name!r}"
    )
