"""Codemagic REST client: start a build, read a build."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from appify.errors.exceptions import VendorError
from appify.models.build import VendorBuildSnapshot

logger = logging.getLogger(__name__)


def _json_object(response: httpx.Response, details: dict) -> dict:
    try:
        data = response.json()
    except ValueError as exc:
        raise VendorError("Codemagic returned a non-JSON response", details={**details, "body": response.text[:500]}) from exc
    if not isinstance(data, dict):
        raise VendorError("Codemagic returned an unexpected response body", details=details)
    return data


class CodemagicClient:
    def __init__(
        self,
        api_token: str,
        app_id: str,
        *,
        api_base: str = "https://api.codemagic.io",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_token = api_token
        self.app_id = app_id
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_token)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-auth-token": self._api_token,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    async def start_build(self, workflow_id: str, branch: str, variables: dict[str, str]) -> str:
        """Submit one build job and return its id.

        Raises:
            VendorError: if the token is missing, the request fails, or no id is returned.
        """
        if not self.configured:
            raise VendorError("Codemagic API token is not configured")

        body = {
            "appId": self.app_id,
            "workflowId": workflow_id,
            "branch": branch,
            "environment": {"variables": variables},
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self._api_base}/builds",
                    headers=self._headers(),
                    json=body,
                )
        except httpx.HTTPError as exc:
            raise VendorError(f"Codemagic build request failed: {exc}") from exc

        if response.status_code >= 300:
            raise VendorError(
                f"Codemagic API error: {response.status_code}",
                details={"workflow_id": workflow_id, "body": response.text[:500]},
            )

        data = _json_object(response, {"workflow_id": workflow_id})
        build_id = data.get("_id") or data.get("buildId")
        if not build_id:
            raise VendorError("Codemagic response did not include a build id", details=data)
        logger.info("Codemagic build %s started (workflow=%s)", build_id, workflow_id)
        return build_id

    async def get_build(self, build_id: str) -> VendorBuildSnapshot:
        """Fetch the vendor's current snapshot of a build.

        Raises:
            VendorError: if the token is missing or the request fails.
        """
        if not self.configured:
            raise VendorError("Codemagic API token is not configured")

        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self._api_base}/builds/{build_id}",
                    headers=self._headers(),
                )
        except httpx.HTTPError as exc:
            raise VendorError(f"Codemagic status request failed: {exc}") from exc

        if response.status_code >= 300:
            logger.warning(
                "Codemagic status for %s returned %s: %s",
                build_id,
                response.status_code,
                response.text[:500],
            )
            raise VendorError(
                f"Codemagic API error: {response.status_code}",
                details={"build_id": build_id},
            )

        data = _json_object(response, {"build_id": build_id})
        build = data.get("build") or data
        try:
            return VendorBuildSnapshot.model_validate(build)
        except PydanticValidationError as exc:
            raise VendorError("Unexpected Codemagic build payload", details={"build_id": build_id}) from exc
