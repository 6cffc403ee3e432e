"""Configuration loading and resolution for specgrid."""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from specgrid.constants import (
    API_URL,
    DEFAULT_CONFIG_FILE,
    ENV_ACCESS_KEY,
    ENV_API_URL,
    ENV_LOCAL,
    ENV_LOCAL_IDENTIFIER,
    ENV_USAGE_REPORTING,
    ENV_USERNAME,
)
from specgrid.errors import ConfigError
from specgrid.errors_catalog import actionable_error
from specgrid.models import BrowserTarget, RunArgs, RunConfiguration, frozen_mapping

_FALSE_VALUES = {"0", "false", "no", "off"}


def resolve_config_path(config_file: Optional[str], cwd: Optional[str] = None) -> str:
    base = Path(cwd or os.getcwd())
    return str((base / (config_file or DEFAULT_CONFIG_FILE)).resolve())


class ConfigLoader:
    """Loads the YAML configuration file."""

    def load(self, config_path: str) -> Dict[str, Any]:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(
                actionable_error("config_invalid_path", path=config_path),
                code="config_invalid_path",
            )

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(
                actionable_error("config_parse_error", path=config_path, detail=str(exc)),
                code="config_parse_error",
            ) from exc

        if parsed is None:
            raise ConfigError(
                actionable_error("config_invalid_empty", path=config_path),
                code="config_invalid_empty",
            )
        if not isinstance(parsed, dict):
            raise ConfigError(
                actionable_error("config_invalid_format", path=config_path),
                code="config_invalid_format",
            )

        return parsed


class ConfigResolver:
    """Builds a RunConfiguration from file values, environment and CLI overrides."""

    SUPPORTED_KEYS = {
        "auth",
        "browsers",
        "run_settings",
        "disable_usage_reporting",
        "api_url",
    }
    SUPPORTED_RUN_SETTINGS = {
        "project_dir",
        "specs",
        "exclude",
        "build_name",
        "parallels",
        "env",
        "dependencies",
        "local",
        "local_identifier",
    }

    def __init__(self, loader: Optional[ConfigLoader] = None, environ: Optional[Mapping[str, str]] = None):
        self.loader = loader or ConfigLoader()
        self.environ = os.environ if environ is None else environ

    def load_and_resolve(self, args: RunArgs) -> RunConfiguration:
        """Loads, resolves and validates the configuration for ``args``."""
        config_path = resolve_config_path(args.config_file)
        raw = self.loader.load(config_path)
        config = self.resolve(raw, args, config_path)
        self.validate(config, raw)
        return config

    def resolve(self, raw: Mapping[str, Any], args: RunArgs, config_path: str) -> RunConfiguration:
        auth = self._section(raw, "auth")
        run_settings = self._section(raw, "run_settings")

        username = args.username or self.environ.get(ENV_USERNAME) or auth.get("username")
        access_key = args.access_key or self.environ.get(ENV_ACCESS_KEY) or auth.get("access_key")

        env = dict(run_settings.get("env") or {}) if isinstance(run_settings.get("env"), dict) else {}
        env.update(args.env)

        dependencies = run_settings.get("dependencies")
        if dependencies is None:
            dependencies = {}

        local = bool(run_settings.get("local", False))
        if ENV_LOCAL in self.environ:
            local = self.environ[ENV_LOCAL].strip().lower() not in _FALSE_VALUES
        local_identifier = run_settings.get("local_identifier")
        if self.environ.get(ENV_LOCAL_IDENTIFIER):
            local_identifier = self.environ[ENV_LOCAL_IDENTIFIER]
            local = True

        usage_reporting_enabled = not (
            args.disable_usage_reporting
            or raw.get("disable_usage_reporting") is True
            or self.environ.get(ENV_USAGE_REPORTING, "").strip().lower() in _FALSE_VALUES
        )

        project_dir = run_settings.get("project_dir")
        if isinstance(project_dir, str) and project_dir.strip():
            project_dir = str((Path(config_path).parent / project_dir).resolve())

        return RunConfiguration(
            config_path=config_path,
            username=username,
            access_key=access_key,
            build_name=args.build_name or run_settings.get("build_name"),
            browsers=self._browsers(raw.get("browsers")),
            project_dir=project_dir,
            specs=args.specs or self._as_tuple(run_settings.get("specs")),
            exclude=args.exclude or self._as_tuple(run_settings.get("exclude")),
            env=frozen_mapping(env),
            dependencies=frozen_mapping(dependencies if isinstance(dependencies, dict) else {}),
            parallels=run_settings.get("parallels"),
            local=local,
            local_identifier=local_identifier,
            sync=args.sync,
            usage_reporting_enabled=usage_reporting_enabled,
            api_url=str(self.environ.get(ENV_API_URL) or raw.get("api_url") or API_URL).rstrip("/"),
        )

    def validate(self, config: RunConfiguration, raw: Mapping[str, Any]):
        unknown = sorted(set(raw.keys()) - self.SUPPORTED_KEYS)
        run_settings = raw.get("run_settings")
        if isinstance(run_settings, dict):
            unknown.extend(
                f"run_settings.{key}" for key in sorted(set(run_settings) - self.SUPPORTED_RUN_SETTINGS)
            )
        if unknown:
            raise ConfigError(
                actionable_error("config_unknown_keys", keys=", ".join(unknown)),
                code="config_unknown_keys",
                config=config,
            )

        expectations = (
            ("auth", raw.get("auth"), dict, "a mapping"),
            ("browsers", raw.get("browsers"), list, "a list"),
            ("run_settings", run_settings, dict, "a mapping"),
            ("disable_usage_reporting", raw.get("disable_usage_reporting"), bool, "true or false"),
        )
        for key, value, expected_type, expected in expectations:
            self._check_type(config, key, value, expected_type, expected)

        if isinstance(run_settings, dict):
            for key, expected_type, expected in (
                ("specs", (list, str), "a list of globs"),
                ("exclude", (list, str), "a list of globs"),
                ("env", dict, "a mapping"),
                ("dependencies", dict, "a mapping"),
                ("local", bool, "true or false"),
            ):
                self._check_type(
                    config,
                    f"run_settings.{key}",
                    run_settings.get(key),
                    expected_type,
                    expected,
                )

    def _check_type(self, config, key, value, expected_type, expected):
        if value is None or isinstance(value, expected_type):
            return
        raise ConfigError(
            actionable_error("config_invalid_type", key=key, expected=expected),
            code="config_invalid_type",
            config=config,
        )

    @staticmethod
    def _section(raw: Mapping[str, Any], key: str) -> Dict[str, Any]:
        value = raw.get(key)
        return value if isinstance(value, dict) else {}

    @staticmethod
    def _as_tuple(value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(item.strip() for item in value.split(",") if item.strip())
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        return ()

    @staticmethod
    def _browsers(value: Any) -> Tuple[BrowserTarget, ...]:
        if not isinstance(value, list):
            return ()

        targets = []
        for entry in value:
            if not isinstance(entry, dict):
                targets.append(BrowserTarget(browser="", os="", versions=()))
                continue
            versions = entry.get("versions") or []
            if isinstance(versions, (str, int, float)):
                versions = [versions]
            targets.append(
                BrowserTarget(
                    browser=str(entry.get("browser") or ""),
                    os=str(entry.get("os") or ""),
                    versions=tuple(str(item) for item in versions),
                )
            )
        return tuple(targets)
