from fastapi import APIRouter
from sitework.api.routers import auth, admin, sites, phases, tasks, approvals, materials, milestones, notifications

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(sites.router, prefix="/sites", tags=["sites"])
api_router.include_router(phases.router, prefix="/phases", tags=["phases"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(approvals.router, prefix="/approvals", tags=["approvals"])
api_router.include_router(materials.router, prefix="/materials", tags=["materials"])
api_router.include_router(milestones.router, prefix="/milestones", tags=["milestones"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
