"""Template repository bootstrap."""

import base64
import json

import pytest

from appify.services.publisher import ArtifactPublisher
from appify.services.template_repo import PLACEHOLDER_PNG, initialize_template_repo

from conftest import auth_headers

EXPECTED_FILES = {
    "package.json",
    "app.json",
    "App.js",
    "babel.config.js",
    ".gitignore",
    "README.md",
    "codemagic.yaml",
    "assets/icon.png",
    "assets/adaptive-icon.png",
    "assets/favicon.png",
    "assets/splash.png",
}


@pytest.mark.asyncio
async def test_initialize_publishes_every_file(github):
    result = await initialize_template_repo(ArtifactPublisher(github.client()))

    assert result.success is True
    assert set(result.results) == EXPECTED_FILES
    assert result.repo_url == "https://github.com/acme/app-template"
    assert result.message == "Created 11/11 files in https://github.com/acme/app-template"

    package = json.loads(github.text("package.json"))
    assert "@react-navigation/drawer" in package["dependencies"]
    assert "@react-native-community/netinfo" in package["dependencies"]
    assert json.loads(github.text("app.json"))["expo"]["android"]["package"] == "com.app.webview"
    assert base64.b64decode(github.files["assets/splash.png"][1]) == PLACEHOLDER_PNG
    assert PLACEHOLDER_PNG.startswith(b"\x89PNG")


@pytest.mark.asyncio
async def test_partial_failure_is_reported(github):
    github.fail_paths.add("README.md")
    result = await initialize_template_repo(ArtifactPublisher(github.client()))
    assert result.success is False
    assert result.results["README.md"] is False
    assert result.message.startswith("Created 10/11 files")


@pytest.mark.asyncio
async def test_init_route_requires_authentication(client):
    response = await client.post("/api/v1/template-repo/init")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"


@pytest.mark.asyncio
async def test_init_route(client, github):
    response = await client.post("/api/v1/template-repo/init", headers=auth_headers())
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert len(github.files) == len(EXPECTED_FILES)
