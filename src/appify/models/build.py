"""Pydantic models for build submission, status and vendor payloads."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from appify.models.enums import Platform


class BuildResult(BaseModel):
    """Per-platform outcome of one dispatch."""

    platform: Platform
    build_id: str
    status: str
    message: str
    estimated_time: str
    download_url: str | None = None
    synthesized: bool = False


class SubmissionResponse(BaseModel):
    success: bool = True
    replayed: bool = False
    builds: list[BuildResult]
    app_code: str | None = None
    snack_id: str | None = None


class BuildModel(BaseModel):
    """A persisted Build row as seen by clients."""

    model_config = ConfigDict(from_attributes=True)

    build_id: str
    platform: str
    app_name: str
    package_id: str | None = None
    status: str
    download_url: str | None = None
    aab_download_url: str | None = None
    artifact_url: str | None = None
    error_message: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    user_id: str | None = None
    is_synthesized: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    paid: bool = False


class SyncResponse(BaseModel):
    success: bool = True
    status: str
    download_url: str | None = None
    aab_download_url: str | None = None
    build: BuildModel


# --- Codemagic wire formats ---


class _VendorModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class VendorArtefact(_VendorModel):
    name: str | None = None
    type: str | None = None
    url: str | None = None


class VendorBuildSnapshot(_VendorModel):
    """The vendor's current view of one build job."""

    status: str | None = None
    artefacts: list[VendorArtefact] = Field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: str | None = None


class CodemagicWebhookPayload(VendorBuildSnapshot):
    build_id: str = Field(..., min_length=1)
    app_id: str | None = None
    workflow_id: str | None = None
    branch: str | None = None
