from fastapi import APIRouter

from ats_connect.api.routes import connections, health, webhooks

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(connections.router, prefix="/ats/connections", tags=["connections"])
api_router.include_router(webhooks.router, prefix="/ats", tags=["webhooks"])
