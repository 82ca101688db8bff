"""BuildConfig: the wizard's accumulated configuration for one submission.

Field names follow the wizard's camelCase wire format; snake_case names are
accepted as well.
"""

import re
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel

from appify.models.enums import NavigationType, Platform, ResizeMode

_PACKAGE_ID_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*(\.[A-Za-z][A-Za-z0-9_]*)+$"
_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class _WizardModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _check_color(value: str) -> str:
    if not _HEX_COLOR.match(value):
        raise ValueError(f"invalid hex color: {value!r}")
    return value


class NavItem(_WizardModel):
    label: str = Field(..., min_length=1, max_length=60)
    url: str = "/"
    icon: str = "home"
    is_external: bool = False


class NavBarStyle(_WizardModel):
    background_color: str = "#1a1a1a"
    active_icon_color: str = "#007AFF"
    inactive_icon_color: str = "#8E8E93"
    active_text_color: str = "#007AFF"
    inactive_text_color: str = "#8E8E93"

    @field_validator("*")
    @classmethod
    def _colors(cls, value: str) -> str:
        return _check_color(value)


class SplashConfig(_WizardModel):
    image: str | None = None
    background_color: str = "#ffffff"
    resize_mode: ResizeMode = ResizeMode.CONTAIN

    @field_validator("background_color")
    @classmethod
    def _color(cls, value: str) -> str:
        return _check_color(value)


class KeystoreConfig(_WizardModel):
    alias: str = ""
    password: SecretStr = SecretStr("")
    validity: str = "25"
    organization: str = ""
    country: str = ""


class BuildConfig(_WizardModel):
    website_url: str
    app_name: str = Field(..., min_length=1, max_length=100)
    package_id: str = Field(..., pattern=_PACKAGE_ID_PATTERN, max_length=150)
    app_description: str | None = None
    app_icon: str | None = None
    splash_config: SplashConfig = Field(default_factory=SplashConfig)
    enable_navigation: bool = False
    navigation_type: NavigationType = NavigationType.TABS
    nav_items: list[NavItem] = Field(default_factory=list)
    nav_bar_style: NavBarStyle = Field(default_factory=NavBarStyle)
    keystore_config: KeystoreConfig | None = None
    platforms: list[Platform] = Field(..., min_length=1)

    @field_validator("website_url")
    @classmethod
    def _website_url(cls, value: str) -> str:
        value = value.strip()
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise ValueError("websiteUrl must be an absolute http(s) URL")
        return value

    @field_validator("platforms")
    @classmethod
    def _unique_platforms(cls, value: list[Platform]) -> list[Platform]:
        return list(dict.fromkeys(value))
