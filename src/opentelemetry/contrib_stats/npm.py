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

"""Per-version download statistics from the npm registry."""

from logging import getLogger
from typing import Any, Dict, Iterable, List, Optional, Set
from urllib.parse import quote

import requests

from opentelemetry.contrib_stats.errors import FetchError, ParseError
from opentelemetry.contrib_stats.models import VersionDownloads
from opentelemetry.contrib_stats.ranges import InvalidRange, parse_range

_logger = getLogger(__name__)

DOWNLOADS_URL = "https://api.npmjs.org/versions/{package}/last-week"
REGISTRY_URL = "https://registry.npmjs.org/{package}"
DEFAULT_TIMEOUT = 30

# abbreviated metadata still carries the "deprecated" flag of each version
_ABBREVIATED_METADATA = "application/vnd.npm.install-v1+json"


def _quote(package_name: str) -> str:
    # scoped packages are requested as @scope%2Fname
    return quote(package_name, safe="@")


class NpmStatsClient:
    """Fetches last week's downloads of every published version.

    Args:
        session: ``requests`` session to use, a new one by default.
        timeout: seconds to wait for each response.
        with_deprecations: also ask the registry which versions are
            deprecated, so that :func:`filter_stats` can leave them out.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        with_deprecations: bool = False,
    ):
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout
        self._with_deprecations = with_deprecations

    def _get_json(
        self,
        url: str,
        package_name: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = self._session.get(
                url, headers=headers, timeout=self._timeout
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            raise FetchError(
                f"Loading stats failed for {package_name}: {exc}",
                package_name=package_name,
            ) from exc

    def _deprecated_versions(self, package_name: str) -> Set[str]:
        document = self._get_json(
            REGISTRY_URL.format(package=_quote(package_name)),
            package_name,
            headers={"Accept": _ABBREVIATED_METADATA},
        )
        versions = (
            document.get("versions") if isinstance(document, dict) else None
        ) or {}
        return {
            version
            for version, metadata in versions.items()
            if isinstance(metadata, dict) and metadata.get("deprecated")
        }

    def fetch_stats(self, package_name: str) -> List[VersionDownloads]:
        _logger.debug("Fetching download stats for %s", package_name)
        document = self._get_json(
            DOWNLOADS_URL.format(package=_quote(package_name)), package_name
        )
        downloads = (
            document.get("downloads") if isinstance(document, dict) else None
        )
        if not isinstance(downloads, dict):
            raise FetchError(
                f"Unexpected download stats for {package_name}: {document!r}",
                package_name=package_name,
            )
        deprecated = (
            self._deprecated_versions(package_name)
            if self._with_deprecations
            else None
        )
        return [
            VersionDownloads(
                version=version,
                downloads=int(count),
                deprecated=(
                    None if deprecated is None else version in deprecated
                ),
            )
            for version, count in downloads.items()
        ]

    __call__ = fetch_stats


def filter_stats(
    stats: Iterable[VersionDownloads],
    semver_range: str,
    show_deprecated: bool = True,
) -> List[VersionDownloads]:
    """Observations whose version satisfies ``semver_range``.

    Versions flagged as deprecated are dropped unless ``show_deprecated``;
    versions whose deprecation is unknown are always kept.
    """
    try:
        version_range = parse_range(semver_range)
    except InvalidRange as exc:
        raise ParseError(str(exc)) from exc
    return [
        entry
        for entry in stats
        if (show_deprecated or not entry.deprecated)
        and entry.version in version_range
    ]


def sum_downloads(stats: Iterable[VersionDownloads]) -> int:
    return sum(entry.downloads for entry in stats)
