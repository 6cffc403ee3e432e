"""Synchronous build status polling."""

import time
from typing import Any, Dict, Optional

from specgrid.constants import (
    POLLING_IN_PROGRESS,
    SYNC_EXIT_ABORTED,
    SYNC_EXIT_CODES,
    SYNC_EXIT_ERROR,
    TERMINAL_BUILD_STATUSES,
    VISIT_DASHBOARD,
)
from specgrid.errors import BuildError
from specgrid.models import BuildRecord, RunConfiguration
from specgrid.services.api_client import ApiClient


class SyncPoller:
    """Polls a build until it reaches a terminal status and maps it to an exit code."""

    def __init__(
        self,
        logger,
        console,
        api_client: Optional[ApiClient] = None,
        poll_interval: float = 10.0,
        max_consecutive_errors: int = 5,
        sleep=time.sleep,
    ):
        self.logger = logger
        self.console = console
        self.api_client = api_client or ApiClient()
        self.poll_interval = poll_interval
        self.max_consecutive_errors = max_consecutive_errors
        self.sleep = sleep

    def fetch_status(self, config: RunConfiguration, build: BuildRecord) -> Dict[str, Any]:
        response = self.api_client.send("GET", config, f"/builds/{build.build_id}/status")
        return self.api_client.json_payload(response, BuildError)

    def poll_until_terminal(self, config: RunConfiguration, build: BuildRecord) -> int:
        errors = 0
        transient = (self.api_client.requests.RequestException, BuildError)

        try:
            with self.console.status(POLLING_IN_PROGRESS.format(build_id=build.build_id)):
                while True:
                    try:
                        payload = self.fetch_status(config, build)
                    except transient as exc:
                        errors += 1
                        if errors > self.max_consecutive_errors:
                            self.logger.error(
                                "Giving up on build %s after %s failed status checks: %s",
                                build.build_id,
                                errors,
                                exc,
                            )
                            return self._finish(build, SYNC_EXIT_ERROR)
                        self.logger.warning(
                            "Could not fetch build status (%s/%s): %s",
                            errors,
                            self.max_consecutive_errors,
                            exc,
                        )
                        self.sleep(self.poll_interval)
                        continue

                    errors = 0
                    status = str(payload.get("status") or "").lower()
                    if status in TERMINAL_BUILD_STATUSES:
                        self._print_summary(build, status, payload)
                        return self._finish(build, SYNC_EXIT_CODES[status])

                    self.logger.debug("Build %s is %s", build.build_id, status or "queued")
                    self.sleep(self.poll_interval)
        except KeyboardInterrupt:
            self.logger.warning(
                "Stopped waiting for build %s. The build keeps running on the remote service.",
                build.build_id,
            )
            return self._finish(build, SYNC_EXIT_ABORTED)

    def _print_summary(self, build: BuildRecord, status: str, payload: Dict[str, Any]):
        summary = payload.get("summary") or {}
        style = "green" if status == "passed" else "red"
        self.console.print(f"[bold {style}]Build {build.build_id} {status}.[/bold {style}]")
        if isinstance(summary, dict) and summary:
            self.console.print(
                f"Specs passed: {summary.get('passed', 0)}, failed: {summary.get('failed', 0)}"
            )

    def _finish(self, build: BuildRecord, exit_code: int) -> int:
        self.logger.info("%s %s", VISIT_DASHBOARD, build.dashboard_url)
        return exit_code
