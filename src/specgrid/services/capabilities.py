"""Capability validation, spec discovery and parallelism resolution."""

import dataclasses
import re
from pathlib import Path
from typing import Any, Optional, Tuple

from specgrid.constants import (
    DEFAULT_IGNORES,
    DEFAULT_PARALLEL_MESSAGE,
    DEFAULT_SPEC_PATTERN,
    MAX_BUILD_NAME_LENGTH,
    UNLIMITED_PARALLELS,
)
from specgrid.errors import ValidationError
from specgrid.errors_catalog import actionable_error
from specgrid.models import ProjectManifest, RunArgs, RunConfiguration
from specgrid.services.filesystem import iter_files, matches_any


def _invalid(code: str, **kwargs: str) -> ValidationError:
    return ValidationError(actionable_error(code, **kwargs), code=code)


def parse_parallels(value: Any) -> Optional[int]:
    """Returns the parallels value as an int, ``None`` when unset.

    Raises ValidationError for anything that is not a positive integer or -1.
    """
    if value is None or value == DEFAULT_PARALLEL_MESSAGE:
        return None
    if isinstance(value, bool):
        raise _invalid("invalid_parallels_configuration")
    if isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
        value = int(value.strip())
    if not isinstance(value, int) or (value < 1 and value != UNLIMITED_PARALLELS):
        raise _invalid("invalid_parallels_configuration")
    return value


class CapabilityValidator:
    """Checks a configuration against remote-service constraints."""

    def __init__(self, logger):
        self.logger = logger

    def validate(self, config: RunConfiguration, args: RunArgs) -> ProjectManifest:
        if not config.username or not config.access_key:
            raise _invalid("missing_credentials")

        if not config.browsers:
            raise _invalid("empty_browsers")
        for index, target in enumerate(config.browsers, start=1):
            if not target.browser or not target.os or not target.versions:
                raise _invalid("invalid_browser_entry", index=str(index))

        if not config.project_dir:
            raise _invalid("empty_project_dir")
        if not Path(config.project_dir).is_dir():
            raise _invalid("project_dir_not_found", path=config.project_dir)

        # --parallels replaces the configured value, so only one of them is checked.
        if args.parallels is not None:
            parallels = parse_parallels(args.parallels)
        else:
            parallels = parse_parallels(config.parallels)

        if config.local_identifier and not config.local:
            raise _invalid("invalid_local_identifier")

        if config.build_name and len(config.build_name) > MAX_BUILD_NAME_LENGTH:
            raise _invalid("build_name_too_long", limit=str(MAX_BUILD_NAME_LENGTH))

        self.logger.debug("Capabilities validated for %s", config.project_dir)
        return ProjectManifest(
            project_dir=config.project_dir,
            spec_patterns=config.specs or (DEFAULT_SPEC_PATTERN,),
            exclude=config.exclude,
            parallels=parallels,
        )

    def find_spec_files(
        self,
        config: RunConfiguration,
        args: RunArgs,
        manifest: ProjectManifest,
    ) -> Tuple[str, ...]:
        patterns = args.specs or manifest.spec_patterns
        ignores = tuple(manifest.exclude) + DEFAULT_IGNORES
        return tuple(
            path
            for path in iter_files(manifest.project_dir, exclude=ignores)
            if matches_any(path, patterns)
        )

    def count_spec_files(self, config: RunConfiguration, args: RunArgs, manifest: ProjectManifest) -> int:
        if manifest.spec_files:
            return len(manifest.spec_files)
        return len(self.find_spec_files(config, args, manifest))

    def resolve_manifest(
        self,
        config: RunConfiguration,
        args: RunArgs,
        manifest: ProjectManifest,
    ) -> ProjectManifest:
        spec_files = self.find_spec_files(config, args, manifest)
        if not spec_files:
            patterns = ", ".join(args.specs or manifest.spec_patterns)
            raise _invalid("no_spec_files", patterns=patterns, path=manifest.project_dir)
        self.logger.info("Found %s spec file(s) to run.", len(spec_files))
        return dataclasses.replace(manifest, spec_files=spec_files)

    def resolve_parallels(
        self,
        config: RunConfiguration,
        args: RunArgs,
        spec_count: int,
    ) -> RunConfiguration:
        requested = args.parallels if args.parallels is not None else parse_parallels(config.parallels)
        combinations = max(config.browser_combinations, 1)

        if spec_count <= 0:
            resolved: Optional[int] = combinations
        elif requested is None:
            resolved = None
        else:
            resolved = requested
            max_parallels = combinations * spec_count
            if requested != UNLIMITED_PARALLELS and requested > max_parallels:
                self.logger.warning(
                    "Using %s machines instead of %s that you configured as there are %s specs "
                    "to be run on %s browser combinations.",
                    max_parallels,
                    requested,
                    spec_count,
                    combinations,
                )
                resolved = max_parallels

        return dataclasses.replace(config, resolved_parallels=resolved)
