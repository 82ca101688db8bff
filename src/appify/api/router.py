"""Master API router mounted at /api/v1."""

from fastapi import APIRouter

from appify.api.routes import builds, health, payments, template_repo, webhooks

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health.router)
api_router.include_router(builds.router)
api_router.include_router(payments.router)
api_router.include_router(webhooks.router)
api_router.include_router(template_repo.router)
