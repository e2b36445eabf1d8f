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

"""Weight supported and tested version ranges by real-world downloads."""

from decimal import ROUND_HALF_UP, Decimal
from logging import getLogger
from typing import Iterable, List, NamedTuple, Optional

from opentelemetry.contrib_stats.errors import ParseError
from opentelemetry.contrib_stats.models import (
    DownloadStatsSummary,
    PluginError,
    PluginRecord,
    VersionDownloads,
)
from opentelemetry.contrib_stats.npm import filter_stats, sum_downloads

_logger = getLogger(__name__)


class StatsSubset(NamedTuple):
    subset: List[VersionDownloads]
    sum: int


def round_half_up(value: float, digits: int = 0) -> float:
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def format_ratio(part: Optional[int], whole: Optional[int]) -> Optional[float]:
    """Percentage of ``part`` in ``whole``, with one decimal.

    An unknown ``part`` counts as zero; an unknown or empty ``whole`` makes
    the ratio unknown.
    """
    if not whole:
        return None
    if part is None:
        return format_ratio(0, whole)
    return round_half_up(100 * part / whole, 1)


def subset_stats(
    stats: Iterable[VersionDownloads],
    semver_range: str,
    show_deprecated: bool = True,
) -> StatsSubset:
    subset = filter_stats(stats, semver_range, show_deprecated=show_deprecated)
    return StatsSubset(subset, sum_downloads(subset))


def compile_version_stats(
    record: PluginRecord, show_deprecated: bool = True
) -> Optional[DownloadStatsSummary]:
    if record.downloads is None:
        _logger.info("No stats, skipping %s", record.target_package_name)
        return None
    stats = record.downloads
    total = sum_downloads(stats)

    supported = (
        subset_stats(stats, record.supported_range, show_deprecated)
        if record.supported_range
        else None
    )
    tested = (
        subset_stats(stats, record.tested_range, show_deprecated)
        if record.tested_range
        else None
    )
    tested_supported = (
        subset_stats(supported.subset, record.tested_range, show_deprecated)
        if supported and tested
        else None
    )

    supported_sum = supported.sum if supported else None
    tested_sum = tested.sum if tested else None
    tested_supported_sum = tested_supported.sum if tested_supported else None
    return DownloadStatsSummary(
        total_downloads=total,
        supported_downloads=supported_sum,
        tested_downloads=tested_sum,
        tested_within_supported_downloads=tested_supported_sum,
        supported_ratio=format_ratio(supported_sum, total),
        tested_ratio=format_ratio(tested_sum, total),
        tested_within_supported_ratio=format_ratio(
            tested_supported_sum, supported_sum
        ),
    )


def compile_all(
    records: Iterable[PluginRecord], show_deprecated: bool = True
) -> None:
    """Fill ``stats`` of every record whose package name was resolved.

    A range that cannot be evaluated is stored as the record's ``error``.
    """
    for record in records:
        if not record.target_package_name:
            continue
        try:
            record.stats = compile_version_stats(record, show_deprecated)
        except ParseError as exc:
            record.error = PluginError(
                kind="parse",
                message=str(exc),
                package_name=record.target_package_name,
            )
            _logger.warning(
                "Unable to compile stats for %s: %s",
                record.target_package_name,
                exc,
            )
