"""Bootstrap the template repository with a buildable default app."""

from __future__ import annotations

import base64
import json
import logging

from pydantic import BaseModel

from appify.assembler.entrypoint import generate_entry_point
from appify.assembler.manifest import render_manifest
from appify.assembler.workflow import render_workflow_config
from appify.models.build_config import BuildConfig
from appify.models.enums import Platform
from appify.services.publisher import ICON_PATHS, SPLASH_PATHS, ArtifactPublisher

logger = logging.getLogger(__name__)

# 1x1 transparent PNG
PLACEHOLDER_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

DEFAULT_CONFIG = BuildConfig(
    website_url="https://example.com",
    app_name="WebView App",
    package_id="com.app.webview",
    platforms=[Platform.ANDROID, Platform.IOS],
)

PACKAGE_JSON = {
    "name": "webview-app-template",
    "version": "1.0.0",
    "main": "node_modules/expo/AppEntry.js",
    "scripts": {
        "start": "expo start",
        "android": "expo start --android",
        "ios": "expo start --ios",
        "web": "expo start --web",
    },
    "dependencies": {
        "expo": "~50.0.0",
        "expo-status-bar": "~1.11.1",
        "react": "18.2.0",
        "react-native": "0.73.2",
        "react-native-webview": "13.6.4",
        "@react-native-community/netinfo": "11.1.0",
        "@react-navigation/native": "^6.1.9",
        "@react-navigation/bottom-tabs": "^6.5.11",
        "@react-navigation/drawer": "^6.6.6",
        "react-native-gesture-handler": "~2.14.0",
        "react-native-reanimated": "~3.6.2",
        "react-native-screens": "~3.29.0",
        "react-native-safe-area-context": "4.8.2",
        "@expo/vector-icons": "^14.0.0",
    },
    "devDependencies": {"@babel/core": "^7.20.0"},
    "private": True,
}

BABEL_CONFIG = """module.exports = function (api) {
  api.cache(true);
  return {
    presets: ['babel-preset-expo'],
    plugins: ['react-native-reanimated/plugin'],
  };
};
"""

GITIGNORE = """node_modules/
.expo/
dist/
npm-debug.*
*.jks
*.p8
*.p12
*.key
*.mobileprovision
*.orig.*
web-build/
.env
"""

README = """# WebView App Template

Expo / React Native template for WebView wrapper apps.

Before each build the builder service overwrites:

- `app.json`: app name, package id, icons and splash
- `App.js`: website URL and navigation
- `codemagic.yaml`: build workflows
- `assets/`: uploaded icon and splash image

## Local development

```bash
npm install
npx expo start
```
"""


class TemplateInitResult(BaseModel):
    success: bool
    message: str
    results: dict[str, bool]
    repo_url: str


def template_files() -> list[tuple[str, str]]:
    """Text files of the default template, in publish order."""
    return [
        ("package.json", json.dumps(PACKAGE_JSON, indent=2) + "\n"),
        ("app.json", render_manifest(DEFAULT_CONFIG)),
        ("App.js", generate_entry_point(DEFAULT_CONFIG)),
        ("babel.config.js", BABEL_CONFIG),
        (".gitignore", GITIGNORE),
        ("README.md", README),
        ("codemagic.yaml", render_workflow_config(DEFAULT_CONFIG)),
    ]


async def initialize_template_repo(publisher: ArtifactPublisher) -> TemplateInitResult:
    """Publish every template file and report per-file success."""
    results: dict[str, bool] = {}
    for path, content in template_files():
        results[path] = await publisher.publish(path, content, f"Add {path}")
    for path in ICON_PATHS + SPLASH_PATHS:
        results[path] = await publisher.publish_bytes(path, PLACEHOLDER_PNG, f"Add placeholder {path}")

    succeeded = sum(1 for ok in results.values() if ok)
    repo_url = publisher.client.repo_url
    logger.info("Template initialization complete: %d/%d files", succeeded, len(results))
    return TemplateInitResult(
        success=succeeded == len(results),
        message=f"Created {succeeded}/{len(results)} files in {repo_url}",
        results=results,
        repo_url=repo_url,
    )
