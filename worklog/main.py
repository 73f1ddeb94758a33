# worklog/main.py
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc
from worklog.config import settings
from worklog.database import engine, Base
from worklog.models import user, project, report, todo, work_breakdown, project_report  # noqa: F401 register tables
from worklog.routers import auth, projects, daily_reports, reports, todos, shares, project_reports
from worklog.routers import work_breakdown as work_breakdown_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Worklog - Daily Report & Project Tracking", version="1.0")

# Include Routers
app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(daily_reports.router)
app.include_router(reports.router)
app.include_router(todos.router)
app.include_router(work_breakdown_router.router)
app.include_router(shares.router)
app.include_router(shares.public_router)
app.include_router(project_reports.router)


@app.exception_handler(sa_exc.SQLAlchemyError)
async def database_error_handler(request: Request, exc: sa_exc.SQLAlchemyError):
    logger.error("database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "服务器内部错误，请稍后重试"})


# Create DB tables for local runs; use Alembic in prod
@app.on_event("startup")
async def startup_event():
    # ignore duplicate-object errors from previous partial runs
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise

@app.get("/")
def read_root():
    return {"message": "Welcome to Worklog Backend"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("worklog.main:app", host="0.0.0.0", port=8000, reload=True)
