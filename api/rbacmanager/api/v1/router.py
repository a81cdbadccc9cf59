"""API v1 router assembly."""

from fastapi import APIRouter

from rbacmanager.api.v1.endpoints import rbac, simulate

api_router = APIRouter()

api_router.include_router(rbac.router, prefix="/rbac", tags=["rbac"])
api_router.include_router(simulate.router, prefix="/rbac", tags=["simulation"])
