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

import json

import pytest

from opentelemetry.contrib_stats.models import VersionDownloads

EXPRESS_README = """# OpenTelemetry Express Instrumentation for Node.js

This module provides automatic instrumentation for the [`express`](https://github.com/expressjs/express) module.

## Supported Versions

- `^4.0.0`

## Usage
"""

IOREDIS_README = """# OpenTelemetry ioredis Instrumentation for Node.js

This module provides automatic instrumentation for the [`ioredis`](https://github.com/luin/ioredis) module.

## Supported Versions

- `>=2.0.0 <6`
"""


@pytest.fixture
def make_plugin(tmp_path):
    """Create ``tmp_path/plugins/<directory>`` with the given documents."""
    plugins_dir = tmp_path / "plugins"
    plugins_dir.mkdir()

    def _make_plugin(directory, package_json=None, readme=None, tav=None):
        root = plugins_dir / directory
        root.mkdir()
        if package_json is not None:
            (root / "package.json").write_text(json.dumps(package_json))
        if readme is not None:
            (root / "README.md").write_text(readme)
        if tav is not None:
            (root / ".tav.yml").write_text(tav)
        return root

    _make_plugin.plugins_dir = plugins_dir
    return _make_plugin


@pytest.fixture
def express_stats():
    return [
        VersionDownloads(version="3.21.2", downloads=100),
        VersionDownloads(version="4.17.1", downloads=300),
        VersionDownloads(version="4.18.2", downloads=500),
        VersionDownloads(version="5.0.0-beta.1", downloads=100),
    ]
