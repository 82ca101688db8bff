"""Artifact publisher: create-or-update files in the template repository.

Every write first reads the file's current SHA and sends it back with the
new content, so an existing file is replaced rather than rejected as a
conflict (last write wins). Nothing is retried here.
"""

from __future__ import annotations

import base64
import logging

from appify.assembler.sources import GeneratedSources
from appify.errors.exceptions import PublishError
from appify.integrations.github import GitHubContentsClient

logger = logging.getLogger(__name__)

MANIFEST_PATH = "app.json"
ENTRY_POINT_PATH = "App.js"
WORKFLOW_PATH = "codemagic.yaml"

# Every icon slot of the generated app reads the same uploaded image
ICON_PATHS = ("assets/icon.png", "assets/adaptive-icon.png", "assets/favicon.png")
SPLASH_PATHS = ("assets/splash.png",)


class ArtifactPublisher:
    def __init__(self, client: GitHubContentsClient) -> None:
        self.client = client

    async def _write(self, path: str, content_b64: str, message: str) -> bool:
        if not self.client.configured:
            logger.error("GitHub credentials not configured, cannot publish %s", path)
            return False
        sha = await self.client.get_file_sha(path)
        return await self.client.put_file(path, content_b64, message, sha=sha)

    async def publish(self, path: str, content: str, message: str) -> bool:
        """Publish UTF-8 text content to ``path``."""
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
        return await self._write(path, encoded, message)

    async def publish_bytes(self, path: str, data: bytes, message: str) -> bool:
        """Publish binary content to ``path``."""
        return await self._write(path, base64.b64encode(data).decode("ascii"), message)

    async def publish_image(self, data: bytes, paths: tuple[str, ...], label: str) -> dict[str, bool]:
        results: dict[str, bool] = {}
        for path in paths:
            results[path] = await self.publish_bytes(path, data, f"Update {label}")
        return results

    async def publish_build_sources(self, sources: GeneratedSources, app_name: str) -> dict[str, bool]:
        """Publish the generated sources for one submission.

        The manifest, entry point and pipeline definition are required;
        images are best-effort.

        Raises:
            PublishError: when a required file could not be written.
        """
        results: dict[str, bool] = {}
        required = (
            (MANIFEST_PATH, sources.manifest, f"Update app config for {app_name}"),
            (ENTRY_POINT_PATH, sources.entry_point, f"Update App.js for {app_name}"),
            (WORKFLOW_PATH, sources.workflow, f"Update build pipeline for {app_name}"),
        )
        for path, content, message in required:
            ok = await self.publish(path, content, message)
            results[path] = ok
            if not ok:
                raise PublishError(path)

        if sources.icon:
            results.update(await self.publish_image(sources.icon, ICON_PATHS, f"app icon for {app_name}"))
        if sources.splash:
            results.update(await self.publish_image(sources.splash, SPLASH_PATHS, f"splash screen for {app_name}"))

        failed = [path for path, ok in results.items() if not ok]
        if failed:
            logger.warning("Optional assets not published for %s: %s", app_name, ", ".join(failed))
        return results
