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

from unittest import mock

import pytest
import requests

from opentelemetry.contrib_stats.errors import FetchError, ParseError
from opentelemetry.contrib_stats.models import VersionDownloads
from opentelemetry.contrib_stats.npm import (
    NpmStatsClient,
    filter_stats,
    sum_downloads,
)


def _response(payload=None, status_error=None):
    response = mock.Mock()
    response.json.return_value = payload
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    return response


def _session(*responses):
    session = mock.Mock(spec=requests.Session)
    session.get.side_effect = list(responses)
    return session


class TestNpmStatsClient:
    def test_fetch_stats(self):
        session = _session(
            _response({"package": "express", "downloads": {"4.17.1": 300}})
        )
        client = NpmStatsClient(session=session, timeout=5)

        assert client("express") == [
            VersionDownloads(version="4.17.1", downloads=300)
        ]
        session.get.assert_called_once_with(
            "https://api.npmjs.org/versions/express/last-week",
            headers=None,
            timeout=5,
        )

    def test_scoped_package(self):
        session = _session(_response({"downloads": {}}))
        NpmStatsClient(session=session).fetch_stats("@hapi/hapi")

        url = session.get.call_args[0][0]
        assert url == "https://api.npmjs.org/versions/@hapi%2Fhapi/last-week"

    def test_http_error(self):
        session = _session(
            _response(status_error=requests.HTTPError("404 Not Found"))
        )
        with pytest.raises(FetchError) as exc_info:
            NpmStatsClient(session=session).fetch_stats("not-a-package")

        assert exc_info.value.package_name == "not-a-package"
        assert "Loading stats failed for not-a-package" in str(exc_info.value)

    def test_connection_error(self):
        session = mock.Mock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(FetchError):
            NpmStatsClient(session=session).fetch_stats("express")

    def test_invalid_json(self):
        response = _response()
        response.json.side_effect = ValueError("Expecting value")
        with pytest.raises(FetchError):
            NpmStatsClient(session=_session(response)).fetch_stats("express")

    def test_unexpected_document(self):
        session = _session(_response({"error": "package not found"}))
        with pytest.raises(FetchError) as exc_info:
            NpmStatsClient(session=session).fetch_stats("express")
        assert exc_info.value.package_name == "express"

    def test_deprecations(self):
        session = _session(
            _response({"downloads": {"1.0.0": 10, "2.0.0": 20}}),
            _response(
                {
                    "versions": {
                        "1.0.0": {"deprecated": "upgrade to 2"},
                        "2.0.0": {},
                    }
                }
            ),
        )
        client = NpmStatsClient(session=session, with_deprecations=True)

        assert client.fetch_stats("left-pad") == [
            VersionDownloads(version="1.0.0", downloads=10, deprecated=True),
            VersionDownloads(version="2.0.0", downloads=20, deprecated=False),
        ]
        registry_call = session.get.call_args_list[1]
        assert registry_call[0][0] == "https://registry.npmjs.org/left-pad"
        assert registry_call[1]["headers"] == {
            "Accept": "application/vnd.npm.install-v1+json"
        }


class TestFilterStats:
    stats = [
        VersionDownloads(version="1.0.0", downloads=10, deprecated=True),
        VersionDownloads(version="1.5.0", downloads=20, deprecated=False),
        VersionDownloads(version="2.0.0", downloads=40),
        VersionDownloads(version="2.1.0-rc.1", downloads=80),
    ]

    def test_range(self):
        assert [entry.version for entry in filter_stats(self.stats, "^1")] == [
            "1.0.0",
            "1.5.0",
        ]

    def test_hide_deprecated(self):
        subset = filter_stats(self.stats, "*", show_deprecated=False)
        assert [entry.version for entry in subset] == ["1.5.0", "2.0.0"]

    def test_prerelease_excluded(self):
        subset = filter_stats(self.stats, ">=2.0.0")
        assert [entry.version for entry in subset] == ["2.0.0"]

    def test_invalid_range(self):
        with pytest.raises(ParseError):
            filter_stats(self.stats, "not a range")

    def test_sum_downloads(self):
        assert sum_downloads(self.stats) == 150
        assert sum_downloads(filter_stats(self.stats, "^1")) == 30
        assert sum_downloads([]) == 0
