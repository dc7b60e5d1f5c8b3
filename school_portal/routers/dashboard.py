# school_portal/routers/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_admin
from ..services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=dict, dependencies=[Depends(require_admin)])
async def dashboard_stats(db: AsyncSession = Depends(get_db)):
    """School-wide totals, recent attendance rate and upcoming events"""
    service = DashboardService(db)
    return await service.get_stats()
