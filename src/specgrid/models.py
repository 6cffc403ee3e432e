"""Shared domain models for specgrid."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union


def frozen_mapping(values: Optional[Mapping[str, Any]] = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class RunArgs:
    """Arguments of one `specgrid run` invocation."""

    config_file: Optional[str] = None
    username: Optional[str] = None
    access_key: Optional[str] = None
    build_name: Optional[str] = None
    parallels: Optional[int] = None
    env: Mapping[str, str] = field(default_factory=frozen_mapping)
    specs: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    disable_dependency_warning: bool = False
    disable_usage_reporting: bool = False
    sync: bool = False

    def to_report(self) -> Dict[str, Any]:
        return {
            "config_file": self.config_file,
            "username": self.username,
            "access_key": "*****" if self.access_key else None,
            "build_name": self.build_name,
            "parallels": self.parallels,
            "env": sorted(self.env),
            "specs": list(self.specs),
            "exclude": list(self.exclude),
            "disable_dependency_warning": self.disable_dependency_warning,
            "disable_usage_reporting": self.disable_usage_reporting,
            "sync": self.sync,
        }


@dataclass(frozen=True)
class BrowserTarget:
    browser: str
    os: str
    versions: Tuple[str, ...]


@dataclass(frozen=True)
class RunConfiguration:
    """Resolved configuration, read-only once constructed."""

    config_path: str
    username: Optional[str] = None
    access_key: Optional[str] = None
    build_name: Optional[str] = None
    browsers: Tuple[BrowserTarget, ...] = ()
    project_dir: Optional[str] = None
    specs: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=frozen_mapping)
    dependencies: Mapping[str, str] = field(default_factory=frozen_mapping)
    parallels: Union[int, str, None] = None
    resolved_parallels: Optional[int] = None
    local: bool = False
    local_identifier: Optional[str] = None
    sync: bool = False
    usage_reporting_enabled: bool = True
    api_url: str = ""

    @property
    def browser_combinations(self) -> int:
        return sum(len(target.versions) for target in self.browsers)

    def to_report(self) -> Dict[str, Any]:
        """Returns a JSON-safe summary without credentials."""
        return {
            "build_name": self.build_name,
            "browsers": [
                {"browser": target.browser, "os": target.os, "versions": list(target.versions)}
                for target in self.browsers
            ],
            "specs": list(self.specs),
            "exclude": list(self.exclude),
            "env": sorted(self.env),
            "dependencies": dict(self.dependencies),
            "parallels": self.parallels,
            "resolved_parallels": self.resolved_parallels,
            "local": self.local,
            "local_identifier": self.local_identifier,
            "sync": self.sync,
        }


@dataclass(frozen=True)
class ProjectManifest:
    project_dir: str
    spec_patterns: Tuple[str, ...]
    exclude: Tuple[str, ...] = ()
    spec_files: Tuple[str, ...] = ()
    parallels: Optional[int] = None


@dataclass(frozen=True)
class ArchiveArtifact:
    path: str
    size: int
    file_count: int


@dataclass(frozen=True)
class UploadHandle:
    url: str


@dataclass(frozen=True)
class BuildRecord:
    build_id: str
    message: str
    dashboard_url: str


@dataclass(frozen=True)
class Success:
    message: str
    dashboard_link: str


@dataclass(frozen=True)
class Failure:
    error_code: str
    message: str


Outcome = Union[Success, Failure]
