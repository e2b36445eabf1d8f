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

from opentelemetry.contrib_stats.ranges import (
    InvalidRange,
    InvalidVersion,
    SemVer,
    parse_range,
    satisfies,
    valid_range,
)


@pytest.mark.parametrize(
    "semver_range, version, expected",
    [
        ("^17.0.0", "17.4.1", True),
        ("^17.0.0", "18.0.0", False),
        ("^17.0.0", "16.9.9", False),
        ("^0.2.3", "0.2.9", True),
        ("^0.2.3", "0.3.0", False),
        ("^0.0.3", "0.0.4", False),
        ("~1.2.3", "1.2.9", True),
        ("~1.2.3", "1.3.0", False),
        ("~1", "1.9.0", True),
        ("1.x", "1.4.0", True),
        ("1.x", "2.0.0", False),
        ("8.*", "8.11.3", True),
        ("7 || 8", "7.18.2", True),
        ("7 || 8", "8.0.0", True),
        ("7 || 8", "9.0.0", False),
        (">=3.3 <4", "3.6.12", True),
        (">=3.3 <4", "3.2.0", False),
        (">=3.3 <4", "4.0.0", False),
        (">=1 <4", "3.99.0", True),
        (">= 1.2.0", "1.2.0", True),
        (">1.2", "1.2.9", False),
        (">1.2", "1.3.0", True),
        ("<=1.2", "1.2.9", True),
        ("<=1.2", "1.3.0", False),
        ("1.2 - 2.3.4", "2.3.4", True),
        ("1.2 - 2.3.4", "2.3.5", False),
        ("1.2 - 2", "2.9.0", True),
        ("1.2 - 2", "1.1.9", False),
        ("1.2.3", "1.2.3", True),
        ("=1.2.3", "1.2.4", False),
        ("v2.0.0", "2.0.0", True),
        ("*", "0.0.1", True),
        ("", "10.0.0", True),
    ],
)
def test_membership(semver_range, version, expected):
    assert satisfies(version, semver_range) is expected


def test_prerelease_needs_matching_comparator():
    assert "5.0.0-beta.1" not in parse_range(">=4.0.0")
    assert "5.0.0-beta.1" not in parse_range("^4.0.0")
    assert "5.0.0-beta.2" in parse_range(">=5.0.0-beta.1")


def test_non_numeric_prerelease_tags():
    assert valid_range("^1.0.0-next.1") == ">=1.0.0-next.1 <2.0.0"
    assert valid_range("~2.0.0-beta.2.1") == ">=2.0.0-beta.2.1 <2.1.0"
    assert "1.0.0-next.2" in parse_range("^1.0.0-next.1")
    assert "1.0.0-next.0" not in parse_range("^1.0.0-next.1")
    assert "10.0.0-next.3" in parse_range(">=10.0.0-canary.1 <11")
    assert "10.0.0-next.3" not in parse_range(">=10.0.0-rc.1 <11")
    assert "4.0.0-next.1" not in parse_range("*")


def test_invalid_versions_never_match():
    for version in ("latest", "1.2", "1.2.3.4", "", None):
        assert version not in parse_range("*")


def test_prerelease_ordering():
    ordered = [
        "1.0.0-alpha",
        "1.0.0-alpha.1",
        "1.0.0-alpha.beta",
        "1.0.0-beta",
        "1.0.0-beta.2",
        "1.0.0-beta.11",
        "1.0.0-rc.1",
        "1.0.0",
        "1.0.1-0",
    ]
    versions = [SemVer.parse(version) for version in ordered]
    assert sorted(reversed(versions)) == versions
    assert [str(version) for version in versions] == ordered


def test_build_metadata_is_ignored():
    assert SemVer.parse("1.2.3+build.5") == SemVer.parse("v1.2.3")
    assert "1.2.3+build.5" in parse_range("1.2.3")


@pytest.mark.parametrize("text", ["1.2", "1.0.0-", "1.0.0-a..b", "x.y.z"])
def test_invalid_versions(text):
    with pytest.raises(InvalidVersion):
        SemVer.parse(text)


@pytest.mark.parametrize(
    "text",
    [
        "not a range",
        "Express 4.x is supported",
        ">=",
        "1.2.3.4",
        "^a.b.c",
        None,
        {"include": "^1.0.0"},
    ],
)
def test_invalid_ranges(text):
    assert valid_range(text) is None
    with pytest.raises(InvalidRange):
        parse_range(text)


def test_valid_range_normalizes():
    assert valid_range("^1.2.0") == ">=1.2.0 <2.0.0"
    assert valid_range("7 || 8") == ">=7.0.0 <8.0.0 || >=8.0.0 <9.0.0"
    assert valid_range("*") == "*"


def test_invalid_range_is_a_value_error():
    with pytest.raises(ValueError):
        parse_range("~>")
