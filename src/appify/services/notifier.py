"""Build notifications: e-mail the owner when a build completes or fails."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from sqlalchemy.ext.asyncio import AsyncSession

from appify.db.models.build import BuildRow
from appify.db.models.profile import ProfileRow
from appify.integrations.resend import ResendClient
from appify.models.enums import BuildStatus, Platform
from appify.repositories.build_repo import BuildRepository
from appify.repositories.profile_repo import ProfileRepository

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_PLATFORM_NAMES = {Platform.ANDROID.value: "Android", Platform.IOS.value: "iOS"}


@dataclass(frozen=True)
class BuildNotification:
    build_id: str
    status: str
    app_name: str
    platform: str
    download_url: str | None = None
    aab_download_url: str | None = None
    error_message: str | None = None
    user_id: str | None = None

    @classmethod
    def from_row(cls, row: BuildRow) -> "BuildNotification":
        return cls(
            build_id=row.build_id,
            status=row.status,
            app_name=row.app_name,
            platform=row.platform,
            download_url=row.download_url,
            aab_download_url=row.aab_download_url,
            error_message=row.error_message,
            user_id=row.user_id,
        )

    @property
    def platform_name(self) -> str:
        return _PLATFORM_NAMES.get(self.platform, self.platform)

    @property
    def artifact_kinds(self) -> list[str]:
        """Human labels for the downloads this build produced."""
        kinds = []
        if self.download_url:
            kinds.append("APK" if self.platform == Platform.ANDROID.value else "IPA")
        if self.aab_download_url:
            kinds.append("AAB (Play Store)")
        return kinds


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "html.j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_notification(notification: BuildNotification, recipient_name: str, site_url: str) -> tuple[str, str]:
    """Return ``(subject, html)`` for a completed or failed build."""
    app_name = notification.app_name or "Your App"
    site_url = site_url.rstrip("/")
    if notification.status == BuildStatus.COMPLETED.value:
        subject = f"{app_name} - {notification.platform_name} Build Successful!"
        template_name = "email/build_completed.html.j2"
    else:
        subject = f"{app_name} - {notification.platform_name} Build Failed"
        template_name = "email/build_failed.html.j2"

    html = _environment().get_template(template_name).render(
        build=notification,
        app_name=app_name,
        recipient_name=recipient_name,
        dashboard_url=f"{site_url}/dashboard",
        builder_url=f"{site_url}/builder",
    )
    return subject, html


class BuildNotifier:
    def __init__(self, session: AsyncSession, email: ResendClient, site_url: str) -> None:
        self.session = session
        self.email = email
        self.site_url = site_url
        self.profiles = ProfileRepository(session)
        self.builds = BuildRepository(session)

    async def resolve_recipient(self, build_id: str, user_id: str | None = None) -> ProfileRow | None:
        """Find the profile to notify: the given user first, then the build's owner."""
        if user_id:
            profile = await self.profiles.get(user_id)
            if profile and profile.email:
                return profile
        build = await self.builds.get(build_id)
        if build and build.user_id and build.user_id != user_id:
            profile = await self.profiles.get(build.user_id)
            if profile and profile.email:
                return profile
        return None

    async def notify(self, notification: BuildNotification) -> str | None:
        """Send the e-mail; return its message id, or None when nobody can be reached.

        Raises:
            EmailDeliveryError: if the e-mail provider rejects the message.
        """
        profile = await self.resolve_recipient(notification.build_id, notification.user_id)
        if profile is None:
            logger.info("No recipient e-mail for build %s, skipping notification", notification.build_id)
            return None

        subject, html = render_notification(notification, profile.full_name or "User", self.site_url)
        return await self.email.send_email(profile.email, subject, html)

    async def notify_build(self, row: BuildRow) -> str | None:
        return await self.notify(BuildNotification.from_row(row))
