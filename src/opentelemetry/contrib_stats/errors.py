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

from typing import Optional


class ContribStatsError(Exception):
    """Base class for errors raised while building the coverage report."""


class ParseError(ContribStatsError):
    """A plugin's README, manifest or tav configuration could not be
    interpreted.

    Recorded on the affected plugin; never aborts the batch.
    """


class FetchError(ContribStatsError):
    """Download statistics could not be fetched for a package."""

    def __init__(self, message: str, package_name: Optional[str] = None):
        super().__init__(message)
        self.package_name = package_name


class PolicyError(ContribStatsError):
    """The applicability policy was asked an unknown question or was
    configured with an unknown table.

    This is a programming or configuration error and is always fatal.
    """
