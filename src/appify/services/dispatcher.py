"""Build dispatcher: one CI job and one Build row per requested platform."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from appify.assembler.workflow import WORKFLOW_IDS
from appify.db.base import new_id
from appify.db.models.build import BuildRow
from appify.errors.exceptions import VendorError
from appify.integrations.codemagic import CodemagicClient
from appify.models.build import BuildResult
from appify.models.build_config import BuildConfig
from appify.models.enums import BuildStatus, Platform
from appify.repositories.build_repo import BuildRepository

logger = logging.getLogger(__name__)

ESTIMATED_TIMES = {
    Platform.ANDROID: "5-10 minutes",
    Platform.IOS: "10-15 minutes",
}


@dataclass(frozen=True)
class Dispatched:
    """The CI service accepted the job and returned its id."""

    build_id: str

    @property
    def synthesized(self) -> bool:
        return False


@dataclass(frozen=True)
class Synthesized:
    """The CI service call failed; ``build_id`` was generated locally."""

    build_id: str
    reason: str

    @property
    def synthesized(self) -> bool:
        return True


JobHandle = Dispatched | Synthesized


def synthesize_build_id(platform: Platform, now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"demo-{platform}-{now_ms}"


def build_variables(config: BuildConfig) -> dict[str, str]:
    """Environment variables passed to every CI job."""
    return {
        "WEBSITE_URL": config.website_url,
        "APP_NAME": config.app_name,
        "PACKAGE_ID": config.package_id,
        "APP_DESCRIPTION": config.app_description or "",
        "ENABLE_NAVIGATION": "true" if config.enable_navigation else "false",
        "NAVIGATION_TYPE": str(config.navigation_type),
        "NAV_ITEMS": json.dumps(
            [item.model_dump(by_alias=True, include={"label", "url", "icon", "is_external"}) for item in config.nav_items],
            separators=(",", ":"),
        ),
    }


class BuildDispatcher:
    def __init__(self, session: AsyncSession, codemagic: CodemagicClient, branch: str = "main") -> None:
        self.session = session
        self.codemagic = codemagic
        self.branch = branch
        self.builds = BuildRepository(session)

    async def submit_job(self, config: BuildConfig, platform: Platform) -> JobHandle:
        try:
            build_id = await self.codemagic.start_build(
                WORKFLOW_IDS[platform],
                self.branch,
                build_variables(config),
            )
        except VendorError as exc:
            synthesized = synthesize_build_id(platform)
            logger.warning(
                "Codemagic dispatch failed for %s (%s); using placeholder %s",
                platform,
                exc.message,
                synthesized,
            )
            return Synthesized(build_id=synthesized, reason=exc.message)
        return Dispatched(build_id=build_id)

    async def _adopt(
        self,
        existing: BuildRow,
        config: BuildConfig,
        platform: Platform,
        user_id: str | None,
        idempotency_key: str | None,
    ) -> None:
        await self.builds.update(
            existing,
            platform=str(platform),
            app_name=config.app_name,
            package_id=config.package_id,
            user_id=user_id,
            idempotency_key=idempotency_key,
        )
        await self.session.commit()

    async def _record(
        self,
        config: BuildConfig,
        platform: Platform,
        handle: JobHandle,
        user_id: str | None,
        idempotency_key: str | None,
    ) -> None:
        existing = await self.builds.get(handle.build_id)
        if existing:
            # A webhook for this job arrived before the dispatch-side insert
            await self._adopt(existing, config, platform, user_id, idempotency_key)
            return

        try:
            await self.builds.create(
                id=new_id("bld_"),
                build_id=handle.build_id,
                platform=str(platform),
                app_name=config.app_name,
                package_id=config.package_id,
                status=str(BuildStatus.QUEUED),
                user_id=user_id,
                is_synthesized=handle.synthesized,
                idempotency_key=idempotency_key,
            )
            await self.session.commit()
        except IntegrityError:
            # The webhook inserted the row between the lookup and the insert
            await self.session.rollback()
            existing = await self.builds.get(handle.build_id)
            if existing is None:
                raise
            logger.info("Build %s was created by its webhook; adopting it", handle.build_id)
            await self._adopt(existing, config, platform, user_id, idempotency_key)

    async def dispatch(
        self,
        config: BuildConfig,
        platforms: list[Platform],
        *,
        user_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> list[BuildResult]:
        """Submit one CI job per platform and persist a queued Build row for each.

        A failed submission for one platform never affects another; it
        degrades to a synthesized placeholder id.
        """
        results: list[BuildResult] = []
        for platform in platforms:
            handle = await self.submit_job(config, platform)
            await self._record(config, platform, handle, user_id, idempotency_key)

            if handle.synthesized:
                message = (
                    f"{platform.upper()} build queued locally; the CI service did not accept "
                    "the job, so resubmit to start a real build."
                )
            else:
                message = f"{platform.upper()} build started successfully"
            results.append(
                BuildResult(
                    platform=platform,
                    build_id=handle.build_id,
                    status=str(BuildStatus.QUEUED),
                    message=message,
                    estimated_time=ESTIMATED_TIMES[platform],
                    download_url=None,
                    synthesized=handle.synthesized,
                )
            )
            logger.info("Build %s recorded for %s (synthesized=%s)", handle.build_id, platform, handle.synthesized)
        return results
