"""
Shared fixtures for depsdev-dump tests.
"""

import json
import os

import httpx
import pytest

from depsdev_dump.cli_config import reset_config

WORKSPACE_MANIFEST = """[workspace]
members = ["crates/*"]

[workspace.dependencies]
serde = "1.0"
tokio = { version = "1.28", features = ["full"] }
my-local-crate = { path = "crates/my-local-crate" }
anyhow = { version = "1.0.71" }
"""

DEPS_DEV_RESPONSE = {
    "responses": [
        {
            "request": {
                "versionKey": {"system": "CARGO", "name": "tokio", "version": "1.28"}
            },
            "version": {
                "versionKey": {"system": "CARGO", "name": "tokio", "version": "1.28.0"},
                "licenses": ["MIT"],
                "advisoryKeys": [],
                "isDefault": False,
            },
        }
    ],
    "nextPageToken": "",
}


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep user config files and DEPSDEV_DUMP_* variables out of tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("DEPSDEV_DUMP_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Create a project directory for test files."""
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def sample_workspace(temp_dir):
    """Create a Cargo workspace with a shared dependency table."""
    (temp_dir / "Cargo.toml").write_text(WORKSPACE_MANIFEST)
    return temp_dir


@pytest.fixture
def deps_dev_response():
    return DEPS_DEV_RESPONSE


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def mock_http_client(deps_dev_response, recorded_requests):
    """An httpx.Client that answers every request with a deps.dev response."""

    def handler(request: httpx.Request) -> httpx.Response:
        recorded_requests.append(request)
        return httpx.Response(200, content=json.dumps(deps_dev_response).encode("utf-8"))

    client = httpx.Client(transport=httpx.MockTransport(handler))
    yield client
    client.close()


@pytest.fixture
def failing_http_client():
    """An httpx.Client whose transport refuses every connection."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    yield client
    client.close()
