"""Best-effort usage telemetry."""

import platform
from typing import Any, Dict, Optional

import requests

from specgrid import __version__
from specgrid.constants import USAGE_REPORTING_URL
from specgrid.models import RunArgs, RunConfiguration


class UsageReporter:
    """Sends one outcome record per invocation. Never raises."""

    EVENT_TYPE = "specgrid_cli_stats"

    def __init__(self, logger, requests_module=requests, url: str = USAGE_REPORTING_URL, timeout: float = 10):
        self.logger = logger
        self.requests = requests_module
        self.url = url
        self.timeout = timeout

    def is_enabled(self, config: Optional[RunConfiguration], args: RunArgs) -> bool:
        if config is not None:
            return config.usage_reporting_enabled
        return not args.disable_usage_reporting

    def build_payload(
        self,
        config: Optional[RunConfiguration],
        args: RunArgs,
        message: str,
        message_type: str,
        error_code: Optional[str],
    ) -> Dict[str, Any]:
        return {
            "event_type": self.EVENT_TYPE,
            "data": {
                "os": platform.system(),
                "os_version": platform.release(),
                "python_version": platform.python_version(),
                "cli_version": __version__,
                "config_found": config is not None,
                "config": config.to_report() if config is not None else None,
                "cli_args": args.to_report(),
                "message": message,
                "message_type": message_type,
                "error_code": error_code,
            },
        }

    def report(
        self,
        config: Optional[RunConfiguration],
        args: RunArgs,
        message: str,
        message_type: str,
        error_code: Optional[str],
    ) -> bool:
        if not self.is_enabled(config, args):
            self.logger.debug("Usage reporting is disabled.")
            return False

        try:
            payload = self.build_payload(config, args, message, message_type, error_code)
            response = self.requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except (self.requests.RequestException, TypeError, ValueError) as exc:
            self.logger.debug("Usage report not sent: %s", exc)
            return False

        self.logger.debug("Usage report sent (%s, %s)", message_type, error_code)
        return True
