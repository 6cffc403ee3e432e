import dataclasses

import pytest

from specgrid.constants import DEFAULT_PARALLEL_MESSAGE, DEFAULT_SPEC_PATTERN
from specgrid.errors import ValidationError
from specgrid.models import BrowserTarget, ProjectManifest, RunArgs, RunConfiguration
from specgrid.services.capabilities import CapabilityValidator, parse_parallels


class RecordingLogger:
    def __init__(self):
        self.warnings = []

    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, message, *args, **_kwargs):
        self.warnings.append(message % args)


def _project(tmp_path):
    project = tmp_path / "project"
    (project / "tests").mkdir(parents=True)
    (project / "tests" / "login.spec.js").write_text("it('logs in')", encoding="utf-8")
    (project / "tests" / "cart.spec.js").write_text("it('adds to cart')", encoding="utf-8")
    (project / "tests" / "helpers.js").write_text("module.exports = {}", encoding="utf-8")
    (project / "node_modules" / "lib").mkdir(parents=True)
    (project / "node_modules" / "lib" / "vendor.spec.js").write_text("", encoding="utf-8")
    return project


def _config(tmp_path, **overrides):
    values = dict(
        config_path=str(tmp_path / "specgrid.yml"),
        username="user",
        access_key="key",
        browsers=(
            BrowserTarget(browser="chrome", os="Windows 11", versions=("latest", "latest-1")),
            BrowserTarget(browser="firefox", os="OS X Monterey", versions=("latest",)),
        ),
        project_dir=str(_project(tmp_path)),
    )
    values.update(overrides)
    return RunConfiguration(**values)


def test_validate_returns_manifest_with_default_spec_pattern(tmp_path):
    config = _config(tmp_path, parallels=2)

    manifest = CapabilityValidator(RecordingLogger()).validate(config, RunArgs())

    assert manifest.project_dir == config.project_dir
    assert manifest.spec_patterns == (DEFAULT_SPEC_PATTERN,)
    assert manifest.spec_files == ()
    assert manifest.parallels == 2


@pytest.mark.parametrize(
    "overrides, code",
    [
        ({"username": None}, "missing_credentials"),
        ({"access_key": ""}, "missing_credentials"),
        ({"browsers": ()}, "empty_browsers"),
        ({"browsers": (BrowserTarget(browser="chrome", os="Windows 11", versions=()),)}, "invalid_browser_entry"),
        ({"project_dir": None}, "empty_project_dir"),
        ({"local_identifier": "tunnel-7"}, "invalid_local_identifier"),
        ({"build_name": "x" * 256}, "build_name_too_long"),
    ],
)
def test_validate_rejects_invalid_configuration(tmp_path, overrides, code):
    config = _config(tmp_path, **overrides)

    with pytest.raises(ValidationError) as error:
        CapabilityValidator(RecordingLogger()).validate(config, RunArgs())

    assert error.value.code == code
    assert "Suggested action:" in str(error.value)


def test_validate_rejects_missing_project_dir(tmp_path):
    config = _config(tmp_path)
    config = dataclasses.replace(config, project_dir=str(tmp_path / "missing"))

    with pytest.raises(ValidationError, match="Project directory not found") as error:
        CapabilityValidator(RecordingLogger()).validate(config, RunArgs())

    assert error.value.code == "project_dir_not_found"


def test_validate_accepts_local_identifier_in_local_mode(tmp_path):
    config = _config(tmp_path, local=True, local_identifier="tunnel-7")

    manifest = CapabilityValidator(RecordingLogger()).validate(config, RunArgs())

    assert manifest.project_dir == config.project_dir


@pytest.mark.parametrize("value", [0, -2, "abc", "2.5", True, 1.5])
def test_parse_parallels_rejects_invalid_values(value):
    with pytest.raises(ValidationError) as error:
        parse_parallels(value)

    assert error.value.code == "invalid_parallels_configuration"


@pytest.mark.parametrize(
    "value, expected",
    [(None, None), (DEFAULT_PARALLEL_MESSAGE, None), (3, 3), (-1, -1), ("4", 4), (" -1 ", -1)],
)
def test_parse_parallels_accepts_valid_values(value, expected):
    assert parse_parallels(value) == expected


def test_validate_checks_cli_parallels(tmp_path):
    config = _config(tmp_path, parallels=2)

    with pytest.raises(ValidationError) as error:
        CapabilityValidator(RecordingLogger()).validate(config, RunArgs(parallels=0))

    assert error.value.code == "invalid_parallels_configuration"


def test_validate_cli_parallels_replaces_invalid_config_value(tmp_path):
    config = _config(tmp_path, parallels=0)

    manifest = CapabilityValidator(RecordingLogger()).validate(config, RunArgs(parallels=3))

    assert manifest.parallels == 3


def test_resolve_manifest_finds_spec_files_and_skips_ignored_directories(tmp_path):
    config = _config(tmp_path)
    validator = CapabilityValidator(RecordingLogger())
    manifest = validator.validate(config, RunArgs())

    resolved = validator.resolve_manifest(config, RunArgs(), manifest)

    assert resolved.spec_files == ("tests/cart.spec.js", "tests/login.spec.js")
    assert validator.count_spec_files(config, RunArgs(), resolved) == 2


def test_resolve_manifest_prefers_cli_specs_and_config_excludes(tmp_path):
    config = _config(tmp_path, exclude=("tests/cart.spec.js",))
    validator = CapabilityValidator(RecordingLogger())
    manifest = validator.validate(config, RunArgs())

    resolved = validator.resolve_manifest(config, RunArgs(specs=("./tests/*.spec.js",)), manifest)

    assert resolved.spec_files == ("tests/login.spec.js",)


def test_resolve_manifest_raises_when_nothing_matches(tmp_path):
    config = _config(tmp_path)
    validator = CapabilityValidator(RecordingLogger())
    manifest = ProjectManifest(project_dir=config.project_dir, spec_patterns=("e2e/**/*.cy.js",))

    with pytest.raises(ValidationError, match="No spec files matched e2e/\\*\\*/\\*.cy.js") as error:
        validator.resolve_manifest(config, RunArgs(), manifest)

    assert error.value.code == "no_spec_files"


def test_resolve_parallels_caps_to_available_work(tmp_path):
    logger = RecordingLogger()
    config = _config(tmp_path, parallels=50)

    resolved = CapabilityValidator(logger).resolve_parallels(config, RunArgs(), spec_count=2)

    assert resolved.resolved_parallels == 6
    assert resolved.parallels == 50
    assert logger.warnings == [
        "Using 6 machines instead of 50 that you configured as there are 2 specs "
        "to be run on 3 browser combinations."
    ]


def test_resolve_parallels_keeps_unlimited_and_prefers_cli(tmp_path):
    logger = RecordingLogger()
    validator = CapabilityValidator(logger)
    config = _config(tmp_path, parallels=2)

    assert validator.resolve_parallels(config, RunArgs(parallels=-1), spec_count=2).resolved_parallels == -1
    assert validator.resolve_parallels(config, RunArgs(parallels=4), spec_count=2).resolved_parallels == 4
    assert validator.resolve_parallels(config, RunArgs(), spec_count=2).resolved_parallels == 2
    assert logger.warnings == []


def test_resolve_parallels_without_specs_uses_browser_combinations(tmp_path):
    config = _config(tmp_path, parallels=10)

    resolved = CapabilityValidator(RecordingLogger()).resolve_parallels(config, RunArgs(), spec_count=0)

    assert resolved.resolved_parallels == 3


def test_resolve_parallels_leaves_unset_value_to_the_service(tmp_path):
    config = _config(tmp_path, parallels=DEFAULT_PARALLEL_MESSAGE)

    resolved = CapabilityValidator(RecordingLogger()).resolve_parallels(config, RunArgs(), spec_count=2)

    assert resolved.resolved_parallels is None
