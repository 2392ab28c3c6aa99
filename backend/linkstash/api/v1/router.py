"""API v1 main router - aggregates all endpoint routers."""

from fastapi import APIRouter

from linkstash.api.v1 import articles, settings

api_router = APIRouter()

api_router.include_router(articles.router, prefix="/articles", tags=["articles"])
api_router.include_router(settings.router)
