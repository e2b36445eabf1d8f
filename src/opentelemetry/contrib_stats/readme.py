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

import re
from typing import Optional, Sequence

from opentelemetry.contrib_stats.errors import ParseError
from opentelemetry.contrib_stats.policy import Policy, ReadmeOverride
from opentelemetry.contrib_stats.ranges import valid_range

_SUPPORTED_VERSIONS_RE = re.compile(
    r"#+ Supported Versions\n([^#]+)", re.IGNORECASE
)
_LEADING_RE = re.compile(r"^[-\s`]+")
_TRAILING_RE = re.compile(r"[-\s`]+$")


def get_supported_version_section(
    readme: str, overrides: Optional[Sequence[ReadmeOverride]] = None
) -> str:
    """Return the raw text that declares the supported versions.

    The override table is consulted first, in order; otherwise the text
    following a ``Supported Versions`` heading, up to the next heading.
    """
    if overrides is None:
        overrides = Policy.default().readme_overrides
    for pattern, semver_range in overrides:
        if pattern.search(readme):
            return semver_range
    match = _SUPPORTED_VERSIONS_RE.search(readme)
    if not match:
        raise ParseError("Could not find supported versions section")
    return match.group(1)


def get_supported_versions(
    readme: str, overrides: Optional[Sequence[ReadmeOverride]] = None
) -> str:
    section = get_supported_version_section(readme, overrides)
    version = _TRAILING_RE.sub("", _LEADING_RE.sub("", section))
    if valid_range(version) is None:
        raise ParseError(
            f"Invalid version {version!r} in section:\n{section}"
        )
    return version
