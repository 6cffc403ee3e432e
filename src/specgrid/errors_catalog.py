"""Actionable error catalog and error-code classification for specgrid."""

import re
from typing import Dict, Optional, Pattern

from .constants import GENERIC_ERROR_CODE

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "config_invalid_path": {
        "what": "Couldn't find the configuration file at {path}.",
        "next": "Create it or pass `--config-file <path to specgrid.yml>`.",
    },
    "config_parse_error": {
        "what": "Could not parse configuration file {path}: {detail}",
        "next": "Fix the YAML syntax and retry.",
    },
    "config_invalid_empty": {
        "what": "Configuration file {path} is empty.",
        "next": "Add the `auth`, `browsers` and `run_settings` sections.",
    },
    "config_invalid_format": {
        "what": "Configuration file {path} must contain a YAML mapping at the root.",
        "next": "Use `key: value` sections at the top level.",
    },
    "config_unknown_keys": {
        "what": "Unknown configuration keys: {keys}.",
        "next": "Remove or rename the listed keys.",
    },
    "config_invalid_type": {
        "what": "Configuration key `{key}` must be {expected}.",
        "next": "Fix the value type in the configuration file.",
    },
    "missing_credentials": {
        "what": "Username and access key are required.",
        "next": "Set `auth` in the configuration file, pass `--username`/`--key`, "
        "or export SPECGRID_USERNAME and SPECGRID_ACCESS_KEY.",
    },
    "empty_browsers": {
        "what": "No browsers specified in the configuration.",
        "next": "Add at least one entry under `browsers`.",
    },
    "invalid_browser_entry": {
        "what": "Browser entry {index} must define `browser`, `os` and a non-empty `versions` list.",
        "next": "Fix the entry under `browsers`.",
    },
    "empty_project_dir": {
        "what": "`run_settings.project_dir` is not set.",
        "next": "Point it at the directory that holds your spec files.",
    },
    "project_dir_not_found": {
        "what": "Project directory not found: {path}",
        "next": "Check `run_settings.project_dir`. Relative paths are resolved from the config file.",
    },
    "invalid_parallels_configuration": {
        "what": "Invalid value specified for parallels to use.",
        "next": "Use a number greater than 0, or -1 to use every available machine.",
    },
    "invalid_local_identifier": {
        "what": "A local identifier is set but local mode is disabled.",
        "next": "Set `run_settings.local: true` or remove `local_identifier`.",
    },
    "build_name_too_long": {
        "what": "Build name must be at most {limit} characters.",
        "next": "Shorten `--build-name` or `run_settings.build_name`.",
    },
    "no_spec_files": {
        "what": "No spec files matched {patterns} in {path}.",
        "next": "Check `run_settings.specs`, `--specs` and the exclude globs.",
    },
}

_PLACEHOLDER = re.compile(r"\\\{\w+\\\}")


def _compile(template: str) -> Pattern[str]:
    return re.compile(_PLACEHOLDER.sub(".+?", re.escape(template)), re.DOTALL)


_MESSAGE_PATTERNS: Dict[str, Pattern[str]] = {
    code: _compile(entry["what"]) for code, entry in _ERROR_MESSAGES.items()
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"


def error_code_from_message(message: str) -> Optional[str]:
    """Maps a human-readable error message back to its catalog code."""
    for code, pattern in _MESSAGE_PATTERNS.items():
        if pattern.match(message):
            return code
    return None


def classify_error(exc: BaseException, fallback: str = GENERIC_ERROR_CODE) -> str:
    """Returns the error code of ``exc``.

    Typed codes carried by specgrid errors win; other exceptions are classified
    by their message and fall back to ``fallback``.
    """
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return code
    return error_code_from_message(str(exc)) or fallback
