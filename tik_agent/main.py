import asyncio
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from tik_agent.config import get_settings
from tik_agent.core.redis import close_redis
from tik_agent.database import SessionLocal
from tik_agent.routers import analytics, auth, product, queue, settings as settings_router, system, video, videos
from tik_agent.services.media_storage import media_dir
from tik_agent.services.queue_processor import queue_driver


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.queue_enabled:
        task = asyncio.create_task(
            queue_driver(
                SessionLocal,
                interval=settings.queue_poll_interval_seconds,
                workers=settings.queue_workers,
            )
        )
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        close_redis()


app = FastAPI(title="Tik Agent API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(product.router)
app.include_router(video.router)
app.include_router(videos.router)
app.include_router(settings_router.router)
app.include_router(queue.router)
app.include_router(analytics.router)
app.include_router(system.router)

_media_dir = media_dir()
_media_dir.mkdir(parents=True, exist_ok=True)
app.mount(settings.media_url_prefix, StaticFiles(directory=str(_media_dir)), name="media")


@app.get("/api/health")
def health():
    return {"ok": True, "timestamp": int(time.time() * 1000)}


@app.get("/")
def root():
    return {"message": "Tik Agent API", "docs": "/docs"}
