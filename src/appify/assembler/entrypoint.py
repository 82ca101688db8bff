"""Generated application entry point (App.js).

Generation is split in two steps: :func:`plan_entry_point` turns a
BuildConfig into an :class:`EntryPointPlan` (which variant, which imports,
which screens, which colors) and :func:`render_entry_point` renders a plan
through the single ``app/App.js.j2`` template.

The template uses ``[[ ]]`` / ``[% %]`` delimiters so JSX object literals
(``style={{ ... }}``) pass through untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from appify.assembler.manifest import website_hostname
from appify.models.build_config import BuildConfig
from appify.models.enums import NavigationType, ResizeMode

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

SPLASH_DURATION_MS = 3000
LOAD_TIMEOUT_MS = 15000

# Wizard icon names that differ from their Ionicons glyph name
_ICON_ALIASES = {
    "user": "person",
    "info": "information-circle",
}

_BASE_IMPORTS = (
    "import React, { useEffect, useRef, useState } from 'react';",
    "import { ActivityIndicator, Animated, Image, Linking, Platform, SafeAreaView, StatusBar, StyleSheet, Text, TouchableOpacity, View } from 'react-native';",
    "import { WebView } from 'react-native-webview';",
    "import NetInfo from '@react-native-community/netinfo';",
)

_NAVIGATION_IMPORTS = (
    "import { NavigationContainer } from '@react-navigation/native';",
    "import { Ionicons } from '@expo/vector-icons';",
)


class NavigationVariant(StrEnum):
    NONE = "none"
    TABS = "tabs"
    DRAWER = "drawer"


@dataclass(frozen=True)
class Screen:
    key: str
    label: str
    url: str
    icon: str
    external: bool


@dataclass(frozen=True)
class EntryPointPlan:
    variant: NavigationVariant
    app_name: str
    website_url: str
    hostname: str
    imports: tuple[str, ...]
    screens: tuple[Screen, ...] = ()
    theme: dict = field(default_factory=dict)
    splash: dict = field(default_factory=dict)
    splash_duration_ms: int = SPLASH_DURATION_MS
    load_timeout_ms: int = LOAD_TIMEOUT_MS


def select_variant(config: BuildConfig) -> NavigationVariant:
    if not config.enable_navigation:
        return NavigationVariant.NONE
    if not config.nav_items:
        logger.warning(
            "Navigation enabled for %s without items; generating single-screen app",
            config.app_name,
        )
        return NavigationVariant.NONE
    if config.navigation_type == NavigationType.DRAWER:
        return NavigationVariant.DRAWER
    return NavigationVariant.TABS


def resolve_url(base_url: str, path: str) -> str:
    """Join a nav item path onto the site URL; absolute URLs pass through."""
    if "://" in path:
        return path
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def _imports_for(variant: NavigationVariant) -> tuple[str, ...]:
    if variant == NavigationVariant.TABS:
        return _BASE_IMPORTS + _NAVIGATION_IMPORTS + (
            "import { createBottomTabNavigator } from '@react-navigation/bottom-tabs';",
        )
    if variant == NavigationVariant.DRAWER:
        # gesture-handler must be imported before anything else
        return ("import 'react-native-gesture-handler';",) + _BASE_IMPORTS + _NAVIGATION_IMPORTS + (
            "import { createDrawerNavigator } from '@react-navigation/drawer';",
        )
    return _BASE_IMPORTS


def plan_entry_point(config: BuildConfig) -> EntryPointPlan:
    variant = select_variant(config)
    hostname = website_hostname(config.website_url)

    screens: tuple[Screen, ...] = ()
    theme: dict = {}
    if variant != NavigationVariant.NONE:
        screens = tuple(
            Screen(
                key=f"screen-{index}",
                label=item.label,
                url=resolve_url(config.website_url, item.url),
                icon=_ICON_ALIASES.get(item.icon, item.icon),
                external=item.is_external,
            )
            for index, item in enumerate(config.nav_items)
        )
        theme = config.nav_bar_style.model_dump(by_alias=True)

    splash = config.splash_config
    image_resize_mode = "contain" if splash.resize_mode == ResizeMode.NATIVE else str(splash.resize_mode)

    return EntryPointPlan(
        variant=variant,
        app_name=config.app_name,
        website_url=config.website_url,
        hostname=hostname,
        imports=_imports_for(variant),
        screens=screens,
        theme=theme,
        splash={
            "background_color": splash.background_color,
            "has_image": bool(splash.image),
            "image_resize_mode": image_resize_mode,
        },
    )


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        block_start_string="[%",
        block_end_string="%]",
        variable_start_string="[[",
        variable_end_string="]]",
        comment_start_string="[#",
        comment_end_string="#]",
    )


def render_entry_point(plan: EntryPointPlan) -> str:
    template = _environment().get_template("app/App.js.j2")
    return template.render(plan=plan, variants=NavigationVariant)


def generate_entry_point(config: BuildConfig) -> str:
    return render_entry_point(plan_entry_point(config))
