from fastapi import APIRouter

from hr_admin.api.comp_time import comp_time_router
from hr_admin.api.leaves import leave_types_router, leaves_router
from hr_admin.api.overtime import overtime_router

api_router = APIRouter()
api_router.include_router(comp_time_router)
api_router.include_router(leave_types_router)
api_router.include_router(leaves_router)
api_router.include_router(overtime_router)
