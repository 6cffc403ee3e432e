"""Remote build creation service."""

from typing import Any, Dict, Optional

from specgrid.constants import DASHBOARD_URL
from specgrid.errors import BuildError
from specgrid.models import BuildRecord, RunConfiguration, UploadHandle
from specgrid.services.api_client import ApiClient


class BuildService:
    """Registers a build for an uploaded archive."""

    def __init__(self, logger, api_client: Optional[ApiClient] = None):
        self.logger = logger
        self.api_client = api_client or ApiClient()

    def build_payload(self, config: RunConfiguration, upload: UploadHandle) -> Dict[str, Any]:
        return {
            "test_suite": upload.url,
            "browsers": [
                {"browser": target.browser, "os": target.os, "versions": list(target.versions)}
                for target in config.browsers
            ],
            "run_settings": {
                "build_name": config.build_name,
                "specs": list(config.specs),
                "env": dict(config.env),
                "dependencies": dict(config.dependencies),
                "parallels": config.resolved_parallels,
                "local": config.local,
                "local_identifier": config.local_identifier,
            },
        }

    def create_build(self, config: RunConfiguration, upload: UploadHandle) -> BuildRecord:
        requests_module = self.api_client.requests
        try:
            response = self.api_client.send(
                "POST",
                config,
                "/builds",
                json=self.build_payload(config, upload),
            )
        except requests_module.RequestException as exc:
            raise BuildError(f"Could not reach the remote service: {exc}") from exc

        if response.status_code == 401:
            raise BuildError(
                "Unauthorized: check the username and access key in the configuration file "
                "or the --username/--key options."
            )

        payload = self.api_client.json_payload(response, BuildError)
        build_id = payload.get("build_id")
        if not build_id:
            raise BuildError(str(payload.get("message") or "The remote service did not return a build id."))

        self.logger.debug("Build %s created", build_id)
        return BuildRecord(
            build_id=str(build_id),
            message=str(payload.get("message") or "Success"),
            dashboard_url=str(payload.get("dashboard_url") or f"{DASHBOARD_URL}{build_id}"),
        )
