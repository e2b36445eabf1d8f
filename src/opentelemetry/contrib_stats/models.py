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

"""Records produced by the plugin loader and persisted in the snapshot."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PluginFiles:
    package_json: Optional[Dict[str, Any]] = None
    readme: Optional[str] = None


@dataclass
class TavInfo:
    """Whether a plugin runs test-all-versions, and how."""

    valid: bool = False
    config: Optional[Dict[str, Any]] = None
    tav_version: Optional[str] = None
    script: Optional[str] = None


@dataclass
class VersionDownloads:
    version: str
    downloads: int
    # None when the registry was not asked
    deprecated: Optional[bool] = None


@dataclass
class DownloadStatsSummary:
    """Downloads of the instrumented package, split by version range.

    Ratios are percentages with one decimal; a ratio is ``None`` when its
    denominator is unknown.
    """

    total_downloads: int
    supported_downloads: Optional[int] = None
    tested_downloads: Optional[int] = None
    tested_within_supported_downloads: Optional[int] = None
    supported_ratio: Optional[float] = None
    tested_ratio: Optional[float] = None
    tested_within_supported_ratio: Optional[float] = None


@dataclass
class PluginError:
    kind: str
    message: str
    package_name: Optional[str] = None


@dataclass
class PluginRecord:
    """One instrumentation plugin directory.

    Only ``root`` and ``files`` are guaranteed; every other field is filled
    by the loader stage that owns it, and stays unset when that stage was
    skipped (see ``skipped``) or failed (see ``error``).
    """

    root: str
    files: PluginFiles = field(default_factory=PluginFiles)
    instrumentation_name: Optional[str] = None
    target_package_name: Optional[str] = None
    supported_range: Optional[str] = None
    tested_range: Optional[str] = None
    tav: Optional[TavInfo] = None
    downloads: Optional[List[VersionDownloads]] = None
    stats: Optional[DownloadStatsSummary] = None
    scripts: Optional[Dict[str, bool]] = None
    skipped: Dict[str, str] = field(default_factory=dict)
    error: Optional[PluginError] = None

    @property
    def total_downloads(self) -> Optional[int]:
        if self.stats is None:
            return None
        return self.stats.total_downloads

    def to_dict(self) -> Dict[str, Any]:
        data = {
            key: value
            for key, value in asdict(self).items()
            if value is not None
        }
        if not data["skipped"]:
            del data["skipped"]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PluginRecord":
        data = dict(data)
        data["files"] = PluginFiles(**data.get("files", {}))
        if data.get("tav") is not None:
            data["tav"] = TavInfo(**data["tav"])
        if data.get("downloads") is not None:
            data["downloads"] = [
                VersionDownloads(**entry) for entry in data["downloads"]
            ]
        if data.get("stats") is not None:
            data["stats"] = DownloadStatsSummary(**data["stats"])
        if data.get("error") is not None:
            data["error"] = PluginError(**data["error"])
        return cls(**data)
