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

import argparse
import json
import logging
import re
import sys
from collections import Counter
from os import environ
from typing import Iterable, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from opentelemetry.contrib_stats.environment_variables import (
    OTEL_CONTRIB_STATS_DATA_FILE,
    OTEL_CONTRIB_STATS_LOG_LEVEL,
    OTEL_CONTRIB_STATS_PLUGINS_DIR,
    OTEL_CONTRIB_STATS_POLICY_FILE,
    OTEL_CONTRIB_STATS_RELOAD,
    OTEL_CONTRIB_STATS_TIMEOUT,
)
from opentelemetry.contrib_stats.errors import PolicyError
from opentelemetry.contrib_stats.models import PluginRecord
from opentelemetry.contrib_stats.npm import DEFAULT_TIMEOUT, NpmStatsClient
from opentelemetry.contrib_stats.plugins import load_plugins
from opentelemetry.contrib_stats.policy import Policy
from opentelemetry.contrib_stats.stats import compile_all
from opentelemetry.contrib_stats.version import __version__

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "./data.json"
DEFAULT_PLUGINS_DIR = "../opentelemetry-js-contrib/plugins/node/"

_OR_RE = re.compile(r"\s*\|\|\s*")


def format_large(number: Optional[int]) -> str:
    if number:
        return f"{number:,}"
    return ""


def format_long_range(semver_range: Optional[str]) -> str:
    if not semver_range or len(semver_range) <= 10:
        return semver_range or ""
    versions = _OR_RE.split(semver_range)
    if len(versions) <= 3:
        return semver_range
    return f"{' || '.join(versions[:2])} + {len(versions) - 2} more"


def _format_ratio(ratio: Optional[float]) -> str:
    return "" if ratio is None else str(ratio)


def write_snapshot(filename: str, records: Iterable[PluginRecord]) -> None:
    """Write ``records`` as JSON.

    A record that JSON cannot encode leaves an existing ``filename`` as is.
    """
    text = json.dumps([record.to_dict() for record in records], indent=2)
    with open(filename, "w", encoding="utf-8") as snapshot:
        snapshot.write(text)


def read_snapshot(filename: str) -> List[PluginRecord]:
    with open(filename, encoding="utf-8") as snapshot:
        return [PluginRecord.from_dict(data) for data in json.load(snapshot)]


def load_data(
    filename: str,
    reload: bool = False,
    plugins_dir: str = DEFAULT_PLUGINS_DIR,
    policy: Optional[Policy] = None,
    fetch_stats=None,
    show_deprecated: bool = True,
    max_workers: Optional[int] = None,
) -> List[PluginRecord]:
    """Read the snapshot, or rebuild and rewrite it when ``reload``."""
    if not reload:
        return read_snapshot(filename)
    if fetch_stats is None:
        fetch_stats = NpmStatsClient(with_deprecations=not show_deprecated)
    records = load_plugins(
        plugins_dir,
        policy=policy,
        fetch_stats=fetch_stats,
        max_workers=max_workers,
    )
    compile_all(records, show_deprecated=show_deprecated)
    write_snapshot(filename, records)
    logger.info("File written: %s", filename)
    return records


def with_script_stats(record: PluginRecord) -> PluginRecord:
    scripts = (record.files.package_json or {}).get("scripts")
    if scripts:
        record.scripts = {name: True for name in scripts}
    return record


def select_rows(records: Iterable[PluginRecord]) -> List[PluginRecord]:
    """Plugins with a supported range, most downloaded first.

    Plugins without statistics sort last.
    """
    shown = [record for record in records if record.supported_range]
    return sorted(
        shown,
        key=lambda record: (
            record.total_downloads is not None,
            record.total_downloads or 0,
        ),
        reverse=True,
    )


def render_summary(records: Sequence[PluginRecord], console: Console) -> None:
    table = Table()
    table.add_column("name")
    table.add_column("sum", justify="right")
    for record in records:
        table.add_row(
            record.target_package_name or "",
            format_large(record.total_downloads),
        )
    console.print(table)


def render_details(records: Sequence[PluginRecord], console: Console) -> None:
    table = Table()
    for column in ("name", "supportedRange", "testedRange"):
        table.add_column(column)
    for column in ("support%", "test/support%", "test%"):
        table.add_column(column, justify="right")
    table.add_column("tav")
    table.add_column("sum", justify="right")
    for record in records:
        stats = record.stats
        table.add_row(
            record.target_package_name or "",
            record.supported_range or "",
            format_long_range(record.tested_range),
            _format_ratio(stats.supported_ratio if stats else None),
            _format_ratio(
                stats.tested_within_supported_ratio if stats else None
            ),
            _format_ratio(stats.tested_ratio if stats else None),
            str(bool(record.tav and record.tav.valid)).lower(),
            format_large(record.total_downloads),
        )
    console.print(table)


def unresolved_summary(records: Iterable[PluginRecord]) -> Optional[str]:
    failed = [record for record in records if record.error is not None]
    if not failed:
        return None
    reasons = Counter(record.error.kind for record in failed)
    tally = ", ".join(
        f"{kind} x{count}" for kind, count in sorted(reasons.items())
    )
    return f"unresolved: {len(failed)} plugins (reasons: {tally})"


def render_unresolved(
    records: Sequence[PluginRecord], console: Console
) -> None:
    summary = unresolved_summary(records)
    if summary is None:
        return
    console.print(summary)
    for record in records:
        if record.error is None:
            continue
        first_line = next(iter(record.error.message.splitlines()), "")
        console.print(
            f"  {record.instrumentation_name or record.root}: {first_line}",
            markup=False,
        )


def _env_flag(name: str) -> bool:
    return environ.get(name, "").strip().lower() in ("1", "true", "yes")


def run(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="""
        opentelemetry-contrib-stats compares the version ranges supported and
        tested by each OpenTelemetry JS contrib instrumentation with the npm
        downloads of the package it instruments.
        """
    )
    parser.add_argument(
        "--version",
        help="print version information",
        action="version",
        version="%(prog)s " + __version__,
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        default=_env_flag(OTEL_CONTRIB_STATS_RELOAD),
        help="""
        rebuild the data file from the plugins directory and npm instead of
        reading the data file as-is.
        """,
    )
    parser.add_argument(
        "--data-file",
        default=environ.get(OTEL_CONTRIB_STATS_DATA_FILE, DEFAULT_DATA_FILE),
        help="JSON snapshot to read, or to write when reloading.",
    )
    parser.add_argument(
        "--plugins-dir",
        default=environ.get(
            OTEL_CONTRIB_STATS_PLUGINS_DIR, DEFAULT_PLUGINS_DIR
        ),
        help="directory holding one subdirectory per instrumentation.",
    )
    parser.add_argument(
        "--policy-file",
        default=environ.get(OTEL_CONTRIB_STATS_POLICY_FILE),
        help="YAML file extending the built-in exclusions and overrides.",
    )
    parser.add_argument(
        "--details",
        action="store_true",
        help="show ranges, coverage ratios and tav status for each plugin.",
    )
    parser.add_argument(
        "--hide-deprecated",
        action="store_true",
        help="leave deprecated versions out of the range totals.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(
            environ.get(OTEL_CONTRIB_STATS_TIMEOUT, DEFAULT_TIMEOUT)
        ),
        help="seconds to wait for each npm response.",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="load at most this many plugins concurrently.",
    )
    parser.add_argument(
        "--log-level",
        default=environ.get(OTEL_CONTRIB_STATS_LOG_LEVEL, "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="level of the diagnostics written to stderr.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        policy = (
            Policy.load(args.policy_file)
            if args.policy_file
            else Policy.default()
        )
        records = load_data(
            args.data_file,
            reload=args.reload,
            plugins_dir=args.plugins_dir,
            policy=policy,
            fetch_stats=NpmStatsClient(
                timeout=args.timeout, with_deprecations=args.hide_deprecated
            ),
            show_deprecated=not args.hide_deprecated,
            max_workers=args.max_workers,
        )
    except PolicyError as exc:
        logger.error("Invalid policy: %s", exc)
        sys.exit(1)
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Unable to load plugin data: %s", exc)
        sys.exit(1)

    rows = select_rows(with_script_stats(record) for record in records)
    console = Console()
    if args.details:
        render_details(rows, console)
    else:
        render_summary(rows, console)
    render_unresolved(records, console)
