"""Everything the template repository needs for one build, generated at once."""

import base64
import binascii
import json
import logging
from dataclasses import dataclass

from appify.assembler.entrypoint import generate_entry_point
from appify.assembler.manifest import render_manifest
from appify.assembler.workflow import render_workflow_config
from appify.models.build_config import BuildConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedSources:
    manifest: str
    entry_point: str
    workflow: str
    icon: bytes | None = None
    splash: bytes | None = None


def decode_image_payload(payload: str | None) -> bytes | None:
    """Decode a ``data:`` URL or bare base64 image payload.

    Raises:
        ValueError: if the payload is not valid base64.
    """
    if not payload:
        return None
    data = payload.strip()
    if data.startswith("data:"):
        header, _, data = data.partition(",")
        if ";base64" not in header:
            raise ValueError("image data URL is not base64-encoded")
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 image payload: {exc}") from exc


def _optional_image(payload: str | None, label: str, app_name: str) -> bytes | None:
    try:
        return decode_image_payload(payload)
    except ValueError as exc:
        logger.warning("Ignoring %s for %s: %s", label, app_name, exc)
        return None


def assemble(config: BuildConfig) -> GeneratedSources:
    return GeneratedSources(
        manifest=render_manifest(config),
        entry_point=generate_entry_point(config),
        workflow=render_workflow_config(config),
        icon=_optional_image(config.app_icon, "app icon", config.app_name),
        splash=_optional_image(config.splash_config.image, "splash image", config.app_name),
    )


def preview_id(config: BuildConfig) -> str:
    """Deterministic identifier for the in-browser preview of a config."""
    seed = json.dumps(
        {"url": config.website_url, "name": config.app_name, "nav": config.enable_navigation},
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return "webview-app-" + base64.b64encode(seed.encode("utf-8")).decode("ascii")[:12]
