"""Expo application manifest (app.json) generation."""

import json
import re
from urllib.parse import urlsplit

from appify.models.build_config import BuildConfig

ICON_PATH = "./assets/icon.png"
ADAPTIVE_ICON_PATH = "./assets/adaptive-icon.png"
SPLASH_PATH = "./assets/splash.png"
FAVICON_PATH = "./assets/favicon.png"

APP_VERSION = "1.0.0"


def website_hostname(url: str) -> str:
    """Return the lower-cased hostname of the site being wrapped.

    Raises:
        ValueError: if the URL has no hostname.
    """
    hostname = urlsplit(url).hostname
    if not hostname:
        raise ValueError(f"Cannot extract hostname from website URL {url!r}")
    return hostname.lower()


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "webview-app"


def build_manifest(config: BuildConfig) -> dict:
    """Build the app.json document for a BuildConfig.

    Runtime data the generated app reads back (site URL and navigation) is
    carried in ``expo.extra``.
    """
    splash = config.splash_config
    expo: dict = {
        "name": config.app_name,
        "slug": slugify(config.app_name),
        "version": APP_VERSION,
        "orientation": "portrait",
        "icon": ICON_PATH,
        "userInterfaceStyle": "automatic",
        "splash": {
            "image": SPLASH_PATH,
            "resizeMode": str(splash.resize_mode),
            "backgroundColor": splash.background_color,
        },
        "assetBundlePatterns": ["**/*"],
        "ios": {
            "supportsTablet": True,
            "bundleIdentifier": config.package_id,
        },
        "android": {
            "adaptiveIcon": {
                "foregroundImage": ADAPTIVE_ICON_PATH,
                "backgroundColor": splash.background_color,
            },
            "package": config.package_id,
        },
        "web": {"favicon": FAVICON_PATH},
        "extra": {
            "websiteUrl": config.website_url,
            "websiteHost": website_hostname(config.website_url),
            "enableNavigation": config.enable_navigation,
            "navigationType": str(config.navigation_type),
            "navItems": [
                item.model_dump(by_alias=True, include={"label", "url", "icon", "is_external"})
                for item in config.nav_items
            ],
            "navBarStyle": config.nav_bar_style.model_dump(by_alias=True),
        },
    }
    if config.app_description:
        expo["description"] = config.app_description
    return {"expo": expo}


def render_manifest(config: BuildConfig) -> str:
    return json.dumps(build_manifest(config), indent=2, ensure_ascii=False) + "\n"
