"""Build submission: assemble sources, publish them, dispatch CI jobs."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from appify.assembler.sources import assemble, preview_id
from appify.db.models.build import BuildRow
from appify.models.build import BuildResult, SubmissionResponse
from appify.models.build_config import BuildConfig
from appify.models.enums import Platform
from appify.repositories.build_repo import BuildRepository
from appify.services.dispatcher import ESTIMATED_TIMES, BuildDispatcher
from appify.services.publisher import ArtifactPublisher

logger = logging.getLogger(__name__)


def _replayed_result(row: BuildRow) -> BuildResult:
    platform = Platform(row.platform)
    return BuildResult(
        platform=platform,
        build_id=row.build_id,
        status=row.status,
        message=f"{platform.upper()} build already submitted",
        estimated_time=ESTIMATED_TIMES[platform],
        synthesized=row.is_synthesized,
    )


class BuildPipeline:
    def __init__(
        self,
        session: AsyncSession,
        publisher: ArtifactPublisher,
        dispatcher: BuildDispatcher,
    ) -> None:
        self.session = session
        self.publisher = publisher
        self.dispatcher = dispatcher
        self.builds = BuildRepository(session)

    async def submit(
        self,
        config: BuildConfig,
        *,
        user_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> SubmissionResponse:
        """Run one submission end to end.

        A repeated idempotency key returns the Build rows of the first
        submission without publishing or dispatching again.

        Raises:
            PublishError: if the manifest, entry point or pipeline definition
                could not be published. No job is dispatched in that case.
        """
        if idempotency_key:
            existing = await self.builds.list_by_idempotency_key(idempotency_key)
            if existing:
                logger.info("Replaying submission for idempotency key %s", idempotency_key)
                return SubmissionResponse(
                    replayed=True,
                    builds=[_replayed_result(row) for row in existing],
                )

        if config.keystore_config is not None:
            logger.debug("Keystore configuration supplied for %s; signing uses CI defaults", config.app_name)

        sources = assemble(config)
        await self.publisher.publish_build_sources(sources, config.app_name)

        results = await self.dispatcher.dispatch(
            config,
            config.platforms,
            user_id=user_id,
            idempotency_key=idempotency_key,
        )
        return SubmissionResponse(
            builds=results,
            app_code=sources.entry_point,
            snack_id=preview_id(config),
        )
