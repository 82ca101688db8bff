"""Template repository bootstrap."""

from fastapi import APIRouter

from appify.dependencies import CurrentUser, Publisher
from appify.services.template_repo import TemplateInitResult, initialize_template_repo

router = APIRouter(tags=["Template"])


@router.post("/template-repo/init", response_model=TemplateInitResult)
async def init_template_repo(publisher: Publisher, user: CurrentUser) -> TemplateInitResult:
    return await initialize_template_repo(publisher)
