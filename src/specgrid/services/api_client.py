"""Authenticated HTTP access to the remote execution service."""

from typing import Any, Dict, Type

import requests

from specgrid import __version__
from specgrid.constants import HTTP_TIMEOUT_SECONDS
from specgrid.errors import SubmitError
from specgrid.models import RunConfiguration


def response_message(response) -> str:
    """Extracts the server's error message from a response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        for key in ("message", "error"):
            if payload.get(key):
                return str(payload[key])

    text = (getattr(response, "text", "") or "").strip()
    return text or f"HTTP {response.status_code}"


class ApiClient:
    """Thin wrapper over Requests bound to the configured service and credentials."""

    def __init__(self, requests_module=requests, timeout: float = HTTP_TIMEOUT_SECONDS):
        self.requests = requests_module
        self.timeout = timeout

    def send(self, method: str, config: RunConfiguration, path: str, **kwargs: Any):
        headers = {"User-Agent": f"specgrid/{__version__}"}
        headers.update(kwargs.pop("headers", {}))
        return self.requests.request(
            method,
            f"{config.api_url}{path}",
            auth=(config.username or "", config.access_key or ""),
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )

    def json_payload(self, response, error_class: Type[SubmitError]) -> Dict[str, Any]:
        if response.status_code >= 400:
            raise error_class(response_message(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise error_class(f"Invalid response from the remote service: {exc}") from exc
        if not isinstance(payload, dict):
            raise error_class("Unexpected response from the remote service.")
        return payload
