import asyncio
import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import cleanup as cleanup_api
from app.api import health as health_api
from app.api import posts as posts_api
from app.config import settings
from app.database import create_tables, engine
from app.errors import SnipError, request_validation_handler, snip_error_handler
from app.services.ttl_eviction import start_ttl_evictor

logger = logging.getLogger("snip")

app = FastAPI(title="Snip", description="Ephemeral community wall", version="0.1.0")

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SnipError, snip_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# 注册路由
app.include_router(health_api.router)
app.include_router(posts_api.router, prefix="/posts", tags=["posts"])
app.include_router(cleanup_api.router, prefix="/cleanup", tags=["cleanup"])

# 本地存储模式下的图片静态资源
os.makedirs(settings.STATIC_DIR, exist_ok=True)
app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")


@app.on_event("startup")
async def startup():
    logger.setLevel(settings.LOG_LEVEL.upper())
    await create_tables()
    app.state.ttl_evictor = start_ttl_evictor(settings.TTL_EVICTION_INTERVAL_SECONDS)


@app.on_event("shutdown")
async def shutdown():
    task = getattr(app.state, "ttl_evictor", None)
    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    await engine.dispose()


@app.get("/")
async def root():
    return {"message": "Snip: posts disappear after %d hours" % settings.POST_TTL_HOURS}
