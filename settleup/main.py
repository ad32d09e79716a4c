import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from settleup.core.config import settings
from settleup.core.db_check import wait_for_db, create_tables
from settleup.core.exceptions import DataIntegrityError
from settleup.api.v1.routes.system import router as system_router
from settleup.api.v1.routes.user import router as user_router
from settleup.api.v1.routes.group import router as group_router
from settleup.api.v1.routes.expense import router as expense_router
from settleup.api.v1.routes.settlement import router as settlement_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await wait_for_db()
    await create_tables()
    yield


app = FastAPI(title="SettleUp Backend", lifespan=lifespan)


@app.exception_handler(DataIntegrityError)
async def data_integrity_handler(request: Request, exc: DataIntegrityError):
    logger.error("Data integrity failure for group %s: %s", exc.group_id, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/")
async def root():
    return {"message": "SettleUp Backend is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(user_router, prefix="/api/v1/users")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(expense_router, prefix="/api/v1/expenses")
app.include_router(settlement_router, prefix="/api/v1/settlements")
