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
Environment variables read by ``opentelemetry-contrib-stats``.

Each variable is the fallback for the command line option of the same name,
for example ``--data-file`` falls back to ``OTEL_CONTRIB_STATS_DATA_FILE``.
"""

OTEL_CONTRIB_STATS_PLUGINS_DIR = "OTEL_CONTRIB_STATS_PLUGINS_DIR"
"""
.. envvar:: OTEL_CONTRIB_STATS_PLUGINS_DIR

Directory holding one subdirectory per instrumentation plugin.
Default: ``../opentelemetry-js-contrib/plugins/node/``
"""

OTEL_CONTRIB_STATS_DATA_FILE = "OTEL_CONTRIB_STATS_DATA_FILE"
"""
.. envvar:: OTEL_CONTRIB_STATS_DATA_FILE

Snapshot file read when not reloading and rewritten on reload.
Default: ``./data.json``
"""

OTEL_CONTRIB_STATS_RELOAD = "OTEL_CONTRIB_STATS_RELOAD"
"""
.. envvar:: OTEL_CONTRIB_STATS_RELOAD

Set to ``true`` to rebuild the snapshot from the plugins directory.
"""

OTEL_CONTRIB_STATS_POLICY_FILE = "OTEL_CONTRIB_STATS_POLICY_FILE"
"""
.. envvar:: OTEL_CONTRIB_STATS_POLICY_FILE

YAML file extending the built-in exclusion and override tables.
"""

OTEL_CONTRIB_STATS_TIMEOUT = "OTEL_CONTRIB_STATS_TIMEOUT"
"""
.. envvar:: OTEL_CONTRIB_STATS_TIMEOUT

Timeout in seconds for each npm request.
Default: ``30``
"""

OTEL_CONTRIB_STATS_LOG_LEVEL = "OTEL_CONTRIB_STATS_LOG_LEVEL"
"""
.. envvar:: OTEL_CONTRIB_STATS_LOG_LEVEL

Logging level for diagnostics written to stderr.
Default: ``INFO``
"""
