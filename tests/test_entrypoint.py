"""Generated App.js for each navigation variant."""

import pytest

from appify.assembler.entrypoint import (
    NavigationVariant,
    generate_entry_point,
    plan_entry_point,
    resolve_url,
    select_variant,
)
from appify.models.build_config import BuildConfig

NAV_MARKERS = ("NavigationContainer", "Navigator", "@react-navigation")


def _config(wizard_payload, **overrides) -> BuildConfig:
    return BuildConfig.model_validate({**wizard_payload, **overrides})


def test_no_navigation_has_no_navigation_constructs(wizard_payload):
    source = generate_entry_point(_config(wizard_payload, enableNavigation=False))
    for marker in NAV_MARKERS:
        assert marker not in source
    assert "<WebViewScreen />" in source
    assert 'const WEBSITE_URL = "https://shop.example.com";' in source


def test_navigation_without_items_degrades_to_single_screen(wizard_payload):
    config = _config(wizard_payload, navItems=[])
    assert select_variant(config) == NavigationVariant.NONE
    source = generate_entry_point(config)
    for marker in NAV_MARKERS:
        assert marker not in source


def test_tabs_variant_lists_items_in_order(wizard_payload):
    source = generate_entry_point(_config(wizard_payload))
    assert "createBottomTabNavigator" in source
    assert "createDrawerNavigator" not in source
    assert source.count("<NavigationContainer>") == 1
    positions = [source.index(f'label: "{label}"') for label in ("Home", "Cart", "Blog")]
    assert positions == sorted(positions)
    assert 'url: "https://shop.example.com/cart"' in source


def test_drawer_variant_emits_each_item_exactly_once_in_order(wizard_payload):
    source = generate_entry_point(_config(wizard_payload, navigationType="drawer"))
    assert source.startswith("import 'react-native-gesture-handler';")
    assert "createDrawerNavigator" in source
    assert "createBottomTabNavigator" not in source
    labels = ("Home", "Cart", "Blog")
    for label in labels:
        assert source.count(f'label: "{label}"') == 1
    positions = [source.index(f'label: "{label}"') for label in labels]
    assert positions == sorted(positions)


def test_external_items_are_marked_and_intercepted(wizard_payload):
    source = generate_entry_point(_config(wizard_payload))
    assert 'url: "https://blog.example.org", icon: "book", external: true' in source
    assert 'label: "Home", url: "https://shop.example.com/", icon: "home", external: false' in source
    assert "onShouldStartLoadWithRequest" in source
    assert "'external-link'" in source


def test_loading_timeout_and_offline_handling_present(wizard_payload):
    source = generate_entry_point(_config(wizard_payload, enableNavigation=False))
    assert "const LOAD_TIMEOUT_MS = 15000;" in source
    assert "NetInfo.addEventListener" in source
    assert "OfflineScreen" in source


def test_theme_colors_reach_the_navigator(wizard_payload):
    plan = plan_entry_point(_config(wizard_payload))
    assert plan.theme["activeIconColor"] == "#007aff"
    assert '"backgroundColor": "#ffffff"' in generate_entry_point(_config(wizard_payload))


def test_icon_aliases_are_applied(wizard_payload):
    items = [{"label": "Me", "url": "/me", "icon": "user"}, {"label": "About", "url": "/about", "icon": "info"}]
    plan = plan_entry_point(_config(wizard_payload, navItems=items))
    assert [screen.icon for screen in plan.screens] == ["person", "information-circle"]
    assert [screen.key for screen in plan.screens] == ["screen-0", "screen-1"]


def test_user_text_is_escaped_as_js_string(wizard_payload):
    items = [{"label": 'Say "hi" </script>', "url": "/"}]
    source = generate_entry_point(_config(wizard_payload, navItems=items, appName='Quote "App"'))
    assert "</script>" not in source
    assert '"hi"' not in source


@pytest.mark.parametrize(
    "base,path,expected",
    [
        ("https://a.com", "/x", "https://a.com/x"),
        ("https://a.com/", "x", "https://a.com/x"),
        ("https://a.com", "https://b.com/y", "https://b.com/y"),
    ],
)
def test_resolve_url(base, path, expected):
    assert resolve_url(base, path) == expected
