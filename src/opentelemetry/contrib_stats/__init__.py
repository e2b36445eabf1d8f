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
Coverage report for the OpenTelemetry JS contrib instrumentations.

For every plugin under ``plugins/node`` of an ``opentelemetry-js-contrib``
checkout this package resolves:

* the npm package the plugin instruments,
* the version range its README declares as supported,
* the version range its test matrix (``.tav.yml`` or devDependency) covers,

and weights both ranges by last week's npm downloads of each version.

Usage
-----

.. code:: sh

    opentelemetry-contrib-stats --reload \
        --plugins-dir ../opentelemetry-js-contrib/plugins/node/ --details

.. code:: python

    from opentelemetry.contrib_stats import load_plugins, compile_all
    from opentelemetry.contrib_stats.npm import NpmStatsClient

    records = load_plugins("plugins/node", fetch_stats=NpmStatsClient())
    compile_all(records)
"""

from opentelemetry.contrib_stats.models import (
    DownloadStatsSummary,
    PluginRecord,
)
from opentelemetry.contrib_stats.plugins import load_plugin, load_plugins
from opentelemetry.contrib_stats.policy import Capability, Policy
from opentelemetry.contrib_stats.stats import compile_all
from opentelemetry.contrib_stats.version import __version__

__all__ = [
    "Capability",
    "DownloadStatsSummary",
    "PluginRecord",
    "Policy",
    "__version__",
    "compile_all",
    "load_plugin",
    "load_plugins",
]
