"""
Health checks - for load balancers, Kubernetes, and monitoring.
Challenge: Fast liveness; readiness checks the database.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from marketplace.config import get_settings
from marketplace.core.exceptions import StoreFailure
from marketplace.db.repositories.user_repository import UserRepository
from marketplace.db.session import DbSession

router = APIRouter()
settings = get_settings()


@router.get("")
async def health():
    """Liveness: is the process up?"""
    return {"status": "ok", "app": settings.app_name}


@router.get("/ready")
async def ready(session: DbSession):
    """Readiness: can the catalog store answer a trivial query in time?"""
    try:
        await UserRepository(session).execute(text("SELECT 1"), "readiness probe")
    except StoreFailure:
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}
