# cinematch/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse, JSONResponse

from cinematch.api import router as api_router
from cinematch.api.deps import get_simulator
from cinematch.core.config import get_settings
from cinematch.middleware.request_log import RequestLogMiddleware

settings = get_settings()  # reads .env, ensure_dirs() is called inside


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # cancel image/video tasks still in flight
    await get_simulator().shutdown()


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    root_path=settings.ROOT_PATH,
    lifespan=lifespan,
)

# -----------------------------
# CORS
# -----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# Routers
# -----------------------------
app.include_router(api_router)

app.add_middleware(RequestLogMiddleware)
# -----------------------------
# Utility endpoints
# -----------------------------
@app.get("/", include_in_schema=False)
def root():
    """
    Simple landing: redirect to /docs.
    """
    return RedirectResponse(url="/docs")

@app.get("/healthz", tags=["system"])
def health():
    """
    Service health check.
    """
    return JSONResponse({"ok": True, "name": settings.APP_NAME})

@app.get("/version", tags=["system"])
def version():
    """
    Tells the front-end which models are configured (useful when debugging).
    """
    return {
        "app": settings.APP_NAME,
        "debug": settings.DEBUG,
        "models": {
            "text": settings.GEMINI_MODEL_TEXT,
            "image": settings.GEMINI_MODEL_IMAGE,
            "video": settings.GEMINI_MODEL_VIDEO,
        },
        "video": {
            "resolution": settings.VIDEO_RESOLUTION,
            "aspect_ratio": settings.VIDEO_ASPECT_RATIO,
            "poll_sec": settings.VIDEO_POLL_SEC,
        },
    }


def run() -> None:
    """Serve the API with uvicorn (`cinematch-api`, or `python -m cinematch.main`)."""
    import uvicorn

    uvicorn.run("cinematch.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
