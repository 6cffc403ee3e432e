"""Shared constants for specgrid."""

DEFAULT_CONFIG_FILE = "specgrid.yml"
ARCHIVE_FILE_NAME = "tests.zip"
RESULTS_DIR = "log"
RESULTS_FILE = "build_results.txt"
DEPENDENCIES_FILE = "dependencies.json"

API_URL = "https://api.specgrid.io"
DASHBOARD_URL = "https://dashboard.specgrid.io/builds/"
USAGE_REPORTING_URL = "https://api.specgrid.io/cli/usage"

DEFAULT_SPEC_PATTERN = "**/*.spec.*"
DEFAULT_IGNORES = (
    ".git/**",
    "node_modules/**",
    "**/node_modules/**",
    "**/__pycache__/**",
    "log/**",
)

HTTP_TIMEOUT_SECONDS = 60
MAX_BUILD_NAME_LENGTH = 255
UNLIMITED_PARALLELS = -1

ENV_USERNAME = "SPECGRID_USERNAME"
ENV_ACCESS_KEY = "SPECGRID_ACCESS_KEY"
ENV_LOCAL = "SPECGRID_LOCAL"
ENV_LOCAL_IDENTIFIER = "SPECGRID_LOCAL_IDENTIFIER"
ENV_USAGE_REPORTING = "SPECGRID_USAGE_REPORTING"
ENV_API_URL = "SPECGRID_API_URL"

MESSAGE_TYPE_SUCCESS = "success"
MESSAGE_TYPE_ERROR = "error"

GENERIC_ERROR_CODE = "unclassified_error"
ZIP_CREATION_FAILED = "zip_creation_failed"
ZIP_UPLOAD_FAILED = "zip_upload_failed"
BUILD_FAILED = "build_failed"

# Placeholder value shipped in the sample configuration file.
DEFAULT_PARALLEL_MESSAGE = "Here goes the number of parallels you want to run"

BUILD_CREATED = "Build created"
VISIT_DASHBOARD = "Visit the dashboard for test reporting:"
EXIT_SYNC_CLI_MESSAGE = (
    "Exiting the CLI, but your build is still running. "
    "Check the dashboard later for the results of build <build-id>."
)
NO_PARALLELS = (
    "No parallels specified in run_settings or with --parallels, "
    "default parallelism will be used."
)
NO_DEPENDENCIES = (
    "No dependencies specified in run_settings. "
    "Spec files that import third-party packages will fail on the remote machines."
)
NO_DEPENDENCIES_READ_MORE = (
    "Read more about declaring dependencies: https://docs.specgrid.io/run-settings#dependencies"
)
FAILED_TO_ZIP = "Failed to zip files."
ZIP_UPLOAD_FAILED_MESSAGE = "Zip upload failed."
ZIP_DELETE_FAILED = f"Could not delete {ARCHIVE_FILE_NAME} successfully."
NOT_VALID = f"{DEFAULT_CONFIG_FILE} is not valid."
UPLOAD_IN_PROGRESS = "Uploading the tests to the remote service..."
POLLING_IN_PROGRESS = "Waiting for build {build_id} to finish..."

TERMINAL_BUILD_STATUSES = ("passed", "failed", "error", "timeout", "stopped")

SYNC_EXIT_PASSED = 0
SYNC_EXIT_FAILED = 1
SYNC_EXIT_ERROR = 2
SYNC_EXIT_ABORTED = 130

SYNC_EXIT_CODES = {
    "passed": SYNC_EXIT_PASSED,
    "failed": SYNC_EXIT_FAILED,
    "error": SYNC_EXIT_ERROR,
    "timeout": SYNC_EXIT_ERROR,
    "stopped": SYNC_EXIT_ERROR,
}

EXIT_SUCCESS = 0
EXIT_CONFIG_FAILED = 10
EXIT_CAPABILITIES_FAILED = 11
EXIT_ARCHIVE_FAILED = 12
EXIT_UPLOAD_FAILED = 13
EXIT_BUILD_FAILED = 14
