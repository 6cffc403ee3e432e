"""Archive upload service."""

import os
import time
from typing import Optional

from specgrid.constants import UPLOAD_IN_PROGRESS
from specgrid.errors import UploadError
from specgrid.models import RunConfiguration, UploadHandle
from specgrid.services.api_client import ApiClient


class UploadService:
    """Pushes the archive to remote storage."""

    def __init__(
        self,
        logger,
        console,
        api_client: Optional[ApiClient] = None,
        retry_count: int = 1,
        retry_backoff_seconds: float = 2.0,
        sleep=time.sleep,
    ):
        self.logger = logger
        self.console = console
        self.api_client = api_client or ApiClient()
        self.retry_count = retry_count
        self.retry_backoff_seconds = retry_backoff_seconds
        self.sleep = sleep

    def upload(self, config: RunConfiguration, artifact_path: str) -> UploadHandle:
        if not os.path.isfile(artifact_path):
            raise UploadError(f"Archive not found: {artifact_path}")

        transient = (self.api_client.requests.ConnectionError, self.api_client.requests.Timeout)
        max_attempts = max(1, self.retry_count + 1)

        for attempt in range(1, max_attempts + 1):
            try:
                with self.console.status(UPLOAD_IN_PROGRESS):
                    with open(artifact_path, "rb") as file_obj:
                        response = self.api_client.send(
                            "POST",
                            config,
                            "/upload",
                            files={"file": (os.path.basename(artifact_path), file_obj, "application/zip")},
                        )
            except transient as exc:
                if attempt < max_attempts:
                    self.logger.warning(
                        "Upload failed on attempt %s/%s. Retrying in %.1fs: %s",
                        attempt,
                        max_attempts,
                        self.retry_backoff_seconds,
                        exc,
                    )
                    self.sleep(self.retry_backoff_seconds)
                    continue
                raise UploadError(f"Upload failed: {exc}") from exc
            except (self.api_client.requests.RequestException, OSError) as exc:
                raise UploadError(f"Upload failed: {exc}") from exc

            payload = self.api_client.json_payload(response, UploadError)
            zip_url = payload.get("zip_url")
            if not zip_url:
                raise UploadError("Upload response did not include the archive URL.")

            self.logger.debug("Uploaded %s to %s", artifact_path, zip_url)
            return UploadHandle(url=str(zip_url))

        raise UploadError(f"Upload failed after retries: {artifact_path}")
