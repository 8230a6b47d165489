from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finance_tracker.database import get_db
from finance_tracker.schemas.stats import StatsResponse
from finance_tracker.services.stats_service import get_stats
from finance_tracker.utils.deps import get_current_user

router = APIRouter(tags=["统计"], dependencies=[Depends(get_current_user)])


@router.get("/stats", response_model=StatsResponse, summary="月度统计")
async def stats(
    month: int | None = Query(None, ge=1, le=12, description="默认本月"),
    year: int | None = Query(None, ge=1900, le=9999),
    db: AsyncSession = Depends(get_db),
):
    """本月收支、分类统计、各账户余额、累计余额与年初至今"""
    result = await get_stats(db, month, year)
    return StatsResponse(**result)
