from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.schemas.system import DbHealthOut, HealthOut, MetricsOut
from settleup.services.system_services import check_db_service, system_metrics, system_health
from settleup.db.session import get_db

router = APIRouter()

@router.get("/health", response_model=HealthOut)
async def health():
    return await system_health()

@router.get("/health/db", response_model=DbHealthOut)
async def check_db(response: Response, db: AsyncSession = Depends(get_db)):
    result = await check_db_service(db)
    if not result["db"]:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return result

@router.get("/metrics", response_model=MetricsOut)
async def metrics(db: AsyncSession = Depends(get_db)):
    return await system_metrics(db)
