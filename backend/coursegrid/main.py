import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coursegrid.api.routes import catalog, health, planner, registrations, schedule, tracks
from coursegrid.core.config import get_settings
from coursegrid.core.exceptions import AppError
from coursegrid.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from coursegrid.services.workspace import Workspace

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "workspace", None) is None:
        app.state.workspace = Workspace(settings.scheduling_policy())
    logger.info("Workspace ready slots=%s days=%s", len(app.state.workspace.grid), ",".join(app.state.workspace.grid.days))
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(catalog.router, prefix=f"{settings.api_prefix}/catalog", tags=["catalog"])
app.include_router(registrations.router, prefix=f"{settings.api_prefix}/registrations", tags=["registrations"])
app.include_router(schedule.router, prefix=f"{settings.api_prefix}/schedule", tags=["schedule"])
app.include_router(planner.router, prefix=f"{settings.api_prefix}/planner", tags=["planner"])
app.include_router(tracks.router, prefix=f"{settings.api_prefix}/tracks", tags=["tracks"])
app.include_router(tracks.overrides_router, prefix=f"{settings.api_prefix}/overrides", tags=["tracks"])
