from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from profitlens.api.routes import api_router
from profitlens.core.config import get_settings


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger("profitlens.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── startup ──
    logger.info("ProfitLens API ready (prefix %s).", settings.api_prefix)
    yield
    # ── shutdown ──
    logger.info("ProfitLens API shutdown complete.")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_log(request: Request, call_next):
    started = time.monotonic()
    try:
        response = await call_next(request)
    except Exception as exc:  # pragma: no cover
        logger.exception("Unhandled error for %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    elapsed_ms = (time.monotonic() - started) * 1000
    logger.info(
        "%s %s -> %s %.2fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.get("/healthz")
def healthz() -> dict:
    return {"ok": True, "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/", include_in_schema=False)
def root() -> dict:
    """Index of the analytics endpoints, grouped by area."""
    areas: dict[str, list[str]] = {}
    for route in api_router.routes:
        if not isinstance(route, APIRoute) or "health" in route.tags:
            continue
        areas.setdefault(route.tags[0], []).append(f"{settings.api_prefix}{route.path}")
    return {"service": settings.app_name, "areas": areas, "health": f"{settings.api_prefix}/health"}


app.include_router(api_router, prefix=settings.api_prefix)
