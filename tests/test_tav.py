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

import pytest

from opentelemetry.contrib_stats.errors import ParseError
from opentelemetry.contrib_stats.tav import (
    check_tav,
    get_tested_versions,
    get_tested_versions_from_tav_config,
    load_tav_config,
)

TAV_PACKAGE_JSON = {
    "name": "@opentelemetry/instrumentation-ioredis",
    "scripts": {"test-all-versions": "tav", "test": "mocha"},
    "devDependencies": {"test-all-versions": "5.0.1", "ioredis": "5.2.2"},
}

IOREDIS_TAV = """
ioredis:
  - versions: ">=2.0.0 <4 "
    commands: npm run test
  - versions: "^4.0.0"
    commands: npm run test
"""


class TestCheckTav:
    def test_valid(self, make_plugin):
        root = make_plugin("ioredis", TAV_PACKAGE_JSON, tav=IOREDIS_TAV)
        tav = check_tav(str(root), TAV_PACKAGE_JSON)
        assert tav.valid is True
        assert tav.tav_version == "5.0.1"
        assert tav.script == "tav"
        assert tav.config["ioredis"][1]["versions"] == "^4.0.0"

    def test_missing_config(self, make_plugin):
        root = make_plugin("ioredis", TAV_PACKAGE_JSON)
        tav = check_tav(str(root), TAV_PACKAGE_JSON)
        assert tav.valid is False
        assert tav.config is None
        assert tav.tav_version == "5.0.1"

    def test_missing_script(self, make_plugin):
        package_json = {"name": "@opentelemetry/instrumentation-dns"}
        root = make_plugin("dns", package_json, tav=IOREDIS_TAV)
        tav = check_tav(str(root), package_json)
        assert tav.valid is False
        assert tav.config is not None
        assert tav.tav_version is None
        assert tav.script is None

    def test_malformed_config(self, make_plugin):
        root = make_plugin("broken", TAV_PACKAGE_JSON, tav="ioredis: [\n")
        with pytest.raises(ParseError):
            load_tav_config(str(root))


class TestTestedVersions:
    def test_from_tav_mapping(self):
        config = {"express": {"versions": "^4.0.0", "commands": "npm test"}}
        assert get_tested_versions("express", {}, config) == "^4.0.0"

    def test_from_tav_list(self):
        config = {
            "ioredis": [
                {"versions": ">=2.0.0 <4 "},
                {"versions": " ^4.0.0"},
            ]
        }
        assert (
            get_tested_versions("ioredis", {}, config)
            == ">=2.0.0 <4 || ^4.0.0"
        )

    def test_from_tav_include(self):
        config = {"pg": {"versions": {"include": ">=8 <9", "mode": "max-7"}}}
        assert get_tested_versions_from_tav_config("pg", config) == ">=8 <9"

    def test_tav_without_package(self):
        config = {"redis": {"versions": "^3.0.0"}}
        with pytest.raises(ParseError, match="Unable to parse tested"):
            get_tested_versions("ioredis", {}, config)

    def test_tav_with_invalid_range(self):
        config = {"redis": {"versions": "latest"}}
        with pytest.raises(ParseError, match="Invalid range"):
            get_tested_versions("redis", {}, config)

    def test_dev_dependency(self):
        package_json = {"devDependencies": {"express": "4.17.1"}}
        assert get_tested_versions("express", package_json, None) == "4.17.1"

    def test_dependency_fallback(self):
        package_json = {"dependencies": {"fastify": "^4.5.0"}}
        assert get_tested_versions("fastify", package_json, None) == "^4.5.0"

    @pytest.mark.parametrize(
        "specifier", ["latest", "npm:express@4", "file:../express"]
    )
    def test_dev_dependency_that_is_not_a_range(self, specifier):
        package_json = {"devDependencies": {"express": specifier}}
        with pytest.raises(ParseError, match="Invalid range"):
            get_tested_versions("express", package_json, None)

    def test_dependency_fallback_that_is_not_a_range(self):
        package_json = {"dependencies": {"fastify": "github:fastify/fastify"}}
        with pytest.raises(ParseError, match="Invalid range"):
            get_tested_versions("fastify", package_json, None)

    def test_dependency_is_not_a_test(self):
        package_json = {"dependencies": {"express": "^4.0.0"}}
        with pytest.raises(ParseError, match="No tested version"):
            get_tested_versions("express", package_json, None)

    def test_custom_dependency_fallbacks(self):
        package_json = {"dependencies": {"express": "^4.0.0"}}
        assert (
            get_tested_versions("express", package_json, None, {"express"})
            == "^4.0.0"
        )

    def test_no_package_name(self):
        with pytest.raises(ParseError):
            get_tested_versions(None, {}, None)
