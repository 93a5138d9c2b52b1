"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. Routes read
services from the container through app.api.v1.dependencies.
"""

from fastapi import APIRouter

from switchboard.api.v1.endpoints import health, messaging, tasks, tenants

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(tenants.router, prefix="/admin/tenants", tags=["tenants"])
api_router.include_router(
    messaging.router, prefix="/admin/tenants/{tenant_id}/messaging", tags=["messaging"]
)
api_router.include_router(tasks.router, prefix="/admin/tenants/{tenant_id}/tasks", tags=["tasks"])
