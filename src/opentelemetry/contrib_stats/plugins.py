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
Load every instrumentation plugin of a contrib checkout.

Each plugin directory is handled independently: its ``package.json``,
``README.md`` and ``.tav.yml`` are read, the instrumented package and its
supported and tested ranges are resolved, and the per-version downloads of
that package are fetched. A plugin whose documents cannot be interpreted is
kept with its ``error`` set so that the rest of the batch still completes.
"""

import json
import os
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from logging import getLogger
from typing import Any, Callable, Dict, List, Optional

from opentelemetry import trace
from opentelemetry.contrib_stats.errors import FetchError, ParseError
from opentelemetry.contrib_stats.models import (
    PluginError,
    PluginFiles,
    PluginRecord,
    VersionDownloads,
)
from opentelemetry.contrib_stats.package_name import (
    get_instrumented_package_name,
)
from opentelemetry.contrib_stats.policy import Capability, Policy
from opentelemetry.contrib_stats.readme import get_supported_versions
from opentelemetry.contrib_stats.tav import check_tav, get_tested_versions
from opentelemetry.contrib_stats.version import __version__

_logger = getLogger(__name__)
_tracer = trace.get_tracer(__name__, __version__)

PACKAGE_JSON = "package.json"
README = "README.md"
TESTED_RANGE = "tested_range"

FetchStats = Callable[[str], List[VersionDownloads]]


def _read_text(path: str) -> Optional[str]:
    try:
        # undecodable bytes become U+FFFD
        with open(path, encoding="utf-8", errors="replace") as file:
            return file.read()
    except OSError as exc:
        _logger.warning("Unable to read %s: %s", path, exc)
        return None


def _read_json(path: str) -> Optional[Dict[str, Any]]:
    text = _read_text(path)
    if text is None:
        return None
    try:
        data = json.loads(text)
    except ValueError as exc:
        _logger.warning("Unable to parse %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        _logger.warning("Ignoring %s, not a JSON object", path)
        return None
    return data


def load_files(root: str) -> PluginFiles:
    return PluginFiles(
        package_json=_read_json(os.path.join(root, PACKAGE_JSON)),
        readme=_read_text(os.path.join(root, README)),
    )


def _skip(record: PluginRecord, step: str, reason: str) -> None:
    record.skipped[step] = reason
    _logger.info(
        "Ignoring %s for %s: %s",
        step,
        record.instrumentation_name or record.root,
        reason,
    )


def _resolve(
    record: PluginRecord, policy: Policy, fetch_stats: Optional[FetchStats]
) -> None:
    name = record.instrumentation_name
    package_json = record.files.package_json
    readme = record.files.readme

    record.tav = check_tav(record.root, package_json)

    if policy.should(name, Capability.INSTRUMENTED_PACKAGE_NAME):
        record.target_package_name = get_instrumented_package_name(
            name, readme, policy.package_renames
        )
    else:
        _skip(
            record,
            Capability.INSTRUMENTED_PACKAGE_NAME.value,
            "excluded by policy",
        )

    if not policy.should(name, Capability.SUPPORTED_VERSIONS):
        _skip(
            record, Capability.SUPPORTED_VERSIONS.value, "excluded by policy"
        )
    elif readme is None:
        _skip(record, Capability.SUPPORTED_VERSIONS.value, f"no {README}")
    else:
        record.supported_range = get_supported_versions(
            readme, policy.readme_overrides
        )

    if record.supported_range:
        record.tested_range = get_tested_versions(
            record.target_package_name,
            package_json,
            record.tav.config,
            policy.dependency_fallbacks,
        )
    else:
        _skip(record, TESTED_RANGE, "no supported range")
    _logger.info(
        "%s supported %s tested %s",
        record.target_package_name,
        record.supported_range,
        record.tested_range,
    )

    if not record.target_package_name:
        _skip(record, Capability.FETCH_STATS.value, "no instrumented package")
    elif not policy.should(name, Capability.FETCH_STATS):
        _skip(record, Capability.FETCH_STATS.value, "excluded by policy")
    elif fetch_stats is None:
        _skip(record, Capability.FETCH_STATS.value, "fetching disabled")
    else:
        record.downloads = fetch_stats(record.target_package_name)


def load_plugin(
    root: str,
    policy: Optional[Policy] = None,
    fetch_stats: Optional[FetchStats] = None,
) -> PluginRecord:
    """Build the record of the plugin in ``root``.

    Parse and fetch failures are stored on the record; a
    :class:`~opentelemetry.contrib_stats.errors.PolicyError` propagates.
    """
    if policy is None:
        policy = Policy.default()

    with _tracer.start_as_current_span(
        "contrib_stats.load_plugin",
        attributes={"contrib_stats.plugin.root": root},
    ) as span:
        record = PluginRecord(root=root, files=load_files(root))
        if record.files.package_json is None:
            return record
        record.instrumentation_name = record.files.package_json.get("name")
        try:
            _resolve(record, policy, fetch_stats)
        except ParseError as exc:
            record.error = PluginError(kind="parse", message=str(exc))
            span.record_exception(exc)
            _logger.warning(
                "Unable to parse %s: %s",
                record.instrumentation_name or root,
                exc,
            )
        except FetchError as exc:
            record.error = PluginError(
                kind="fetch", message=str(exc), package_name=exc.package_name
            )
            span.record_exception(exc)
            _logger.warning(
                "Loading stats failed for %s@%s: %s",
                exc.package_name,
                record.supported_range,
                exc,
            )
        except Exception:  # pylint: disable=broad-except
            _logger.exception("Loading of %s failed", root)
            raise
        if record.target_package_name:
            span.set_attribute(
                "contrib_stats.package.name", record.target_package_name
            )
        return record


def load_plugins(
    plugins_dir: str,
    policy: Optional[Policy] = None,
    fetch_stats: Optional[FetchStats] = None,
    max_workers: Optional[int] = None,
) -> List[PluginRecord]:
    """Load every subdirectory of ``plugins_dir``, in listing order.

    All plugins are loaded concurrently, one worker per plugin unless
    ``max_workers`` caps it.
    """
    plugins_dir = os.path.abspath(plugins_dir)
    roots = [
        os.path.join(plugins_dir, entry)
        for entry in os.listdir(plugins_dir)
        if os.path.isdir(os.path.join(plugins_dir, entry))
    ]
    if not roots:
        return []
    with ThreadPoolExecutor(max_workers=max_workers or len(roots)) as executor:
        return list(
            executor.map(
                partial(load_plugin, policy=policy, fetch_stats=fetch_stats),
                roots,
            )
        )
