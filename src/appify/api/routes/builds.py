"""Build submission, listing, manual sync and gated downloads."""

from fastapi import APIRouter, Header, Query
from fastapi.responses import RedirectResponse

from appify.db.models.build import BuildRow
from appify.dependencies import CurrentUser, DBSession, Gate, Pipeline, Synchronizer, UserId
from appify.errors.exceptions import NotFoundError
from appify.logging_config import bind_build_context
from appify.models.build import BuildModel, SubmissionResponse, SyncResponse
from appify.models.build_config import BuildConfig
from appify.models.enums import ArtifactKind
from appify.repositories.build_repo import BuildRepository

router = APIRouter(tags=["Builds"])

_GATED_FIELDS = ("download_url", "aab_download_url", "artifact_url")


def to_build_model(row: BuildRow, paid: bool) -> BuildModel:
    """Serialize a Build row; download links are withheld until the build is paid."""
    model = BuildModel.model_validate(row)
    update: dict = {"paid": paid}
    if not paid:
        update.update({field: None for field in _GATED_FIELDS})
    return model.model_copy(update=update)


async def _get_visible_build(db, build_id: str, user_id: str | None) -> BuildRow:
    bind_build_context(build_id)
    row = await BuildRepository(db).get(build_id)
    # Builds owned by a user are only visible to that user
    if row is None or (row.user_id and row.user_id != user_id):
        raise NotFoundError("Build", build_id)
    return row


@router.post("/builds", response_model=SubmissionResponse)
async def submit_build(
    config: BuildConfig,
    pipeline: Pipeline,
    user_id: UserId,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> SubmissionResponse:
    return await pipeline.submit(config, user_id=user_id, idempotency_key=idempotency_key)


@router.get("/builds", response_model=list[BuildModel])
async def list_builds(db: DBSession, gate: Gate, user: CurrentUser, limit: int = Query(100, ge=1, le=500)):
    rows = await BuildRepository(db).list_by_user(user["sub"], limit=limit)
    return [to_build_model(row, await gate.is_paid(row.build_id)) for row in rows]


@router.get("/builds/{build_id}", response_model=BuildModel)
async def get_build(build_id: str, db: DBSession, gate: Gate, user_id: UserId):
    row = await _get_visible_build(db, build_id, user_id)
    return to_build_model(row, await gate.is_paid(build_id))


@router.post("/builds/{build_id}/sync", response_model=SyncResponse)
async def sync_build(build_id: str, db: DBSession, sync: Synchronizer, gate: Gate, user_id: UserId):
    await _get_visible_build(db, build_id, user_id)
    outcome = await sync.poll(build_id)
    model = to_build_model(outcome.row, await gate.is_paid(build_id))
    return SyncResponse(
        status=outcome.status,
        download_url=model.download_url,
        aab_download_url=model.aab_download_url,
        build=model,
    )


@router.get("/builds/{build_id}/download")
async def download_artifact(
    build_id: str,
    db: DBSession,
    gate: Gate,
    user_id: UserId,
    kind: ArtifactKind = Query(ArtifactKind.APK),
) -> RedirectResponse:
    row = await _get_visible_build(db, build_id, user_id)
    url = await gate.download_url(row, kind)
    return RedirectResponse(url, status_code=307)
