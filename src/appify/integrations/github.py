"""GitHub contents client: read a file's revision token, write a file."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class GitHubContentsClient:
    """Reads and writes single files through ``/repos/{owner}/{repo}/contents``.

    Content passed to :meth:`put_file` is already base64-encoded.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        *,
        branch: str = "main",
        api_base: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._token and self.owner and self.repo)

    @property
    def repo_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "appify-api",
        }

    def _contents_url(self, path: str) -> str:
        return f"{self._api_base}/repos/{self.owner}/{self.repo}/contents/{quote(path)}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    async def get_file_sha(self, path: str) -> str | None:
        """Return the blob SHA of ``path`` on the branch, or None if absent."""
        try:
            async with self._client() as client:
                response = await client.get(
                    self._contents_url(path),
                    headers=self._headers(),
                    params={"ref": self.branch},
                )
        except httpx.HTTPError as exc:
            logger.warning("GitHub read of %s failed: %s", path, exc)
            return None

        if response.status_code == 200:
            sha = response.json().get("sha")
            logger.debug("File %s exists (sha=%s)", path, sha)
            return sha
        if response.status_code != 404:
            logger.warning(
                "GitHub read of %s returned %s: %s",
                path,
                response.status_code,
                response.text[:500],
            )
        return None

    async def put_file(self, path: str, content_b64: str, message: str, sha: str | None = None) -> bool:
        """Create or replace ``path``. Returns True on 200/201."""
        body: dict = {
            "message": message,
            "content": content_b64,
            "branch": self.branch,
        }
        if sha:
            body["sha"] = sha

        try:
            async with self._client() as client:
                response = await client.put(
                    self._contents_url(path),
                    headers=self._headers(),
                    json=body,
                )
        except httpx.HTTPError as exc:
            logger.error("GitHub write of %s failed: %s", path, exc)
            return False

        if response.status_code in (200, 201):
            logger.info("Published %s to %s/%s", path, self.owner, self.repo)
            return True
        logger.warning(
            "GitHub write of %s returned %s: %s",
            path,
            response.status_code,
            response.text[:500],
        )
        return False
