"""Top-level API router."""

from fastapi import APIRouter

from app.api.routes.assignments import router as assignments_router
from app.api.routes.exports import router as exports_router
from app.api.routes.health import router as health_router
from app.api.routes.invoices import router as invoices_router
from app.api.routes.payslips import router as payslips_router
from app.api.routes.projects import router as projects_router
from app.api.routes.users import router as users_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router)
api_router.include_router(projects_router)
api_router.include_router(assignments_router)
api_router.include_router(invoices_router)
api_router.include_router(payslips_router)
api_router.include_router(exports_router)
