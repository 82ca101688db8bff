"""Status synchronizer: fold CI build state into Build rows.

Two paths feed the same update: the CI service's webhook (push) and an
explicit sync request (poll). Both normalize the vendor status, pick
download links out of the artifact list, and notify the owner once the
build enters ``completed`` or ``failed``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from appify.db.base import new_id
from appify.db.models.build import BuildRow
from appify.errors.exceptions import NotFoundError, WebhookProcessingError
from appify.integrations.codemagic import CodemagicClient
from appify.models.build import CodemagicWebhookPayload, VendorArtefact, VendorBuildSnapshot
from appify.models.enums import ArtifactKind, BuildStatus, Platform
from appify.repositories.build_repo import BuildRepository

logger = logging.getLogger(__name__)

UNKNOWN_APP_NAME = "Unknown App"

_STATUS_MAP = {
    "queued": BuildStatus.QUEUED,
    "preparing": BuildStatus.BUILDING,
    "fetching": BuildStatus.BUILDING,
    "building": BuildStatus.BUILDING,
    "testing": BuildStatus.BUILDING,
    "publishing": BuildStatus.BUILDING,
    "finishing": BuildStatus.BUILDING,
    "finished": BuildStatus.COMPLETED,
    "failed": BuildStatus.FAILED,
    "timeout": BuildStatus.FAILED,
    "canceled": BuildStatus.CANCELED,
    "cancelled": BuildStatus.CANCELED,
    "skipped": BuildStatus.CANCELED,
}

# Statuses that trigger an owner e-mail
NOTIFY_STATUSES = (BuildStatus.COMPLETED, BuildStatus.FAILED)


def normalize_status(vendor_status: str | None) -> BuildStatus:
    """Map a CI vendor status onto the internal vocabulary.

    Unrecognized values are treated as in-progress.
    """
    key = (vendor_status or "").strip().lower()
    status = _STATUS_MAP.get(key)
    if status is None:
        logger.warning("Unrecognized vendor build status %r, treating as building", vendor_status)
        return BuildStatus.BUILDING
    return status


@dataclass(frozen=True)
class ArtifactUrls:
    download_url: str | None = None
    aab_download_url: str | None = None


_ARTIFACT_KINDS = {kind.value for kind in ArtifactKind}


def _kind_of(artefact: VendorArtefact) -> str | None:
    kind = (artefact.type or "").strip().lower()
    if kind in _ARTIFACT_KINDS:
        return kind
    if artefact.name and "." in artefact.name:
        extension = artefact.name.rsplit(".", 1)[1].lower()
        if extension in _ARTIFACT_KINDS:
            return extension
    return None


def extract_artifact_urls(artefacts: list[VendorArtefact]) -> ArtifactUrls:
    """Pick the primary and bundle download links from an artifact list.

    The first apk is primary and the first aab is the bundle, regardless of
    list order. Without an apk, an ipa is primary; without either, the first
    artifact that has a URL is.
    """
    with_url = [a for a in artefacts if a.url]
    first: dict[str, str] = {}
    for artefact in with_url:
        kind = _kind_of(artefact)
        if kind is not None:
            first.setdefault(kind, artefact.url)

    primary = first.get(ArtifactKind.APK.value) or first.get(ArtifactKind.IPA.value)
    if primary is None and with_url:
        primary = with_url[0].url
    return ArtifactUrls(download_url=primary, aab_download_url=first.get(ArtifactKind.AAB.value))


def infer_platform(workflow_id: str | None) -> Platform:
    if workflow_id and "android" in workflow_id.lower():
        return Platform.ANDROID
    return Platform.IOS


@dataclass
class SyncOutcome:
    row: BuildRow
    previous_status: str | None
    status: BuildStatus
    queried_vendor: bool = True

    @property
    def entered_notify_state(self) -> bool:
        return self.status in NOTIFY_STATUSES and self.previous_status != self.status


class StatusSynchronizer:
    def __init__(
        self,
        session: AsyncSession,
        codemagic: CodemagicClient | None = None,
        notifier=None,
    ) -> None:
        self.session = session
        self.codemagic = codemagic
        self.notifier = notifier
        self.builds = BuildRepository(session)

    @staticmethod
    def _fields(snapshot: VendorBuildSnapshot, status: BuildStatus) -> dict:
        fields: dict = {"status": str(status)}
        urls = extract_artifact_urls(snapshot.artefacts)
        if urls.download_url:
            fields["download_url"] = urls.download_url
            fields["artifact_url"] = urls.download_url
        if urls.aab_download_url:
            fields["aab_download_url"] = urls.aab_download_url
        if snapshot.error:
            fields["error_message"] = snapshot.error
        if snapshot.started_at:
            fields["started_at"] = snapshot.started_at
        if snapshot.finished_at:
            fields["finished_at"] = snapshot.finished_at
        return fields

    async def apply_status(
        self,
        build_id: str,
        snapshot: VendorBuildSnapshot,
        *,
        insert_missing: bool = False,
        platform: Platform | None = None,
    ) -> SyncOutcome | None:
        """Write a vendor snapshot onto the Build row and commit.

        Returns None when the row does not exist and ``insert_missing`` is
        false. Fields absent from the snapshot are left untouched; the
        status is always written.
        """
        status = normalize_status(snapshot.status)
        fields = self._fields(snapshot, status)

        row = await self.builds.get(build_id)
        if row is None:
            if not insert_missing:
                return None
            row = await self.builds.create(
                id=new_id("bld_"),
                build_id=build_id,
                platform=str(platform or Platform.IOS),
                app_name=UNKNOWN_APP_NAME,
                **fields,
            )
            previous = None
            logger.info("Created build %s from webhook (no prior record)", build_id)
        else:
            previous = row.status
            await self.builds.update(row, **fields)
        await self.session.commit()
        return SyncOutcome(row=row, previous_status=previous, status=status)

    async def _notify(self, outcome: SyncOutcome) -> None:
        if self.notifier is None or not outcome.entered_notify_state:
            return
        try:
            await self.notifier.notify_build(outcome.row)
        except Exception as exc:
            logger.warning("Build notification for %s failed: %s", outcome.row.build_id, exc)

    async def handle_webhook(self, payload: CodemagicWebhookPayload) -> SyncOutcome:
        """Apply a build-status callback, creating the row if it is unknown.

        Raises:
            WebhookProcessingError: if the update could not be persisted.
        """
        try:
            outcome = await self.apply_status(
                payload.build_id,
                payload,
                insert_missing=True,
                platform=infer_platform(payload.workflow_id),
            )
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Failed to record webhook for build %s: %s", payload.build_id, exc)
            raise WebhookProcessingError("Failed to process build webhook") from exc

        logger.info("Build %s is now %s (webhook)", payload.build_id, outcome.status)
        await self._notify(outcome)
        return outcome

    async def poll(self, build_id: str) -> SyncOutcome:
        """Fetch the vendor's current view of a build and apply it.

        Builds that were never accepted by the CI service are returned as
        stored, without a vendor call.

        Raises:
            NotFoundError: if no Build row has this id.
            VendorError: if the CI service cannot be reached or answers badly.
        """
        row = await self.builds.get(build_id)
        if row is None:
            raise NotFoundError("Build", build_id)
        if row.is_synthesized:
            return SyncOutcome(
                row=row,
                previous_status=row.status,
                status=BuildStatus(row.status),
                queried_vendor=False,
            )

        snapshot = await self.codemagic.get_build(build_id)
        outcome = await self.apply_status(build_id, snapshot)
        logger.info("Build %s is now %s (poll)", build_id, outcome.status)
        await self._notify(outcome)
        return outcome
