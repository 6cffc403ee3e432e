import pytest

from specgrid.errors import BuildError
from specgrid.models import BrowserTarget, RunConfiguration, UploadHandle, frozen_mapping
from specgrid.services.api_client import ApiClient, response_message
from specgrid.services.build import BuildService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.payload = payload
        self.text = text

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _config():
    return RunConfiguration(
        config_path="specgrid.yml",
        username="user",
        access_key="key",
        build_name="nightly",
        browsers=(BrowserTarget(browser="chrome", os="Windows 11", versions=("latest",)),),
        specs=("tests/**/*.spec.js",),
        env=frozen_mapping({"HOST": "staging"}),
        parallels=10,
        resolved_parallels=4,
        api_url="https://api.example.com",
    )


def _service(outcome):
    requests_module = FakeRequestsModule(outcome)
    return BuildService(DummyLogger(), api_client=ApiClient(requests_module=requests_module)), requests_module


def test_create_build_posts_payload_and_returns_record():
    service, requests_module = _service(
        FakeResponse(payload={"build_id": "b-42", "message": "Success", "dashboard_url": "https://dash/b-42"})
    )

    build = service.create_build(_config(), UploadHandle(url="specgrid://abc123"))

    assert build.build_id == "b-42"
    assert build.message == "Success"
    assert build.dashboard_url == "https://dash/b-42"
    method, url, kwargs = requests_module.calls[0]
    assert (method, url) == ("POST", "https://api.example.com/builds")
    payload = kwargs["json"]
    assert payload["test_suite"] == "specgrid://abc123"
    assert payload["browsers"] == [{"browser": "chrome", "os": "Windows 11", "versions": ["latest"]}]
    assert payload["run_settings"]["parallels"] == 4
    assert payload["run_settings"]["env"] == {"HOST": "staging"}


def test_create_build_falls_back_to_dashboard_url():
    service, _requests_module = _service(FakeResponse(payload={"build_id": 7}))

    build = service.create_build(_config(), UploadHandle(url="specgrid://abc123"))

    assert build.build_id == "7"
    assert build.message == "Success"
    assert build.dashboard_url == "https://dashboard.specgrid.io/builds/7"


def test_create_build_reports_unauthorized():
    service, _requests_module = _service(FakeResponse(status_code=401, payload={"message": "nope"}))

    with pytest.raises(BuildError, match="^Unauthorized"):
        service.create_build(_config(), UploadHandle(url="specgrid://abc123"))


def test_create_build_surfaces_server_message():
    service, _requests_module = _service(FakeResponse(status_code=422, payload={"error": "Unknown browser: netscape"}))

    with pytest.raises(BuildError, match="Unknown browser: netscape"):
        service.create_build(_config(), UploadHandle(url="specgrid://abc123"))


def test_create_build_requires_build_id():
    service, _requests_module = _service(FakeResponse(payload={"message": "Parallel limit reached"}))

    with pytest.raises(BuildError, match="Parallel limit reached"):
        service.create_build(_config(), UploadHandle(url="specgrid://abc123"))


def test_create_build_wraps_network_errors():
    service, _requests_module = _service(FakeRequestsModule.RequestException("connection refused"))

    with pytest.raises(BuildError, match="Could not reach the remote service: connection refused"):
        service.create_build(_config(), UploadHandle(url="specgrid://abc123"))


def test_response_message_prefers_json_then_text():
    assert response_message(FakeResponse(status_code=500, payload={"message": "boom"})) == "boom"
    assert response_message(FakeResponse(status_code=500, text=" gateway down ")) == "gateway down"
    assert response_message(FakeResponse(status_code=503)) == "HTTP 503"
