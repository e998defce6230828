from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deadline.api.routes import content, revalidate, search
from deadline.config import settings
from deadline.pipeline.controller import EventPipeline
from deadline.services.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    pipeline = EventPipeline.from_settings(settings)
    app.state.pipeline = pipeline
    app.state.http_client = pipeline.http_client
    logger.info("DEADLINE API started")
    yield
    # Shutdown
    await pipeline.aclose()


app = FastAPI(
    title="DEADLINE",
    description="Search, scrape and synthesize structured records of news events",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(search.router)
app.include_router(revalidate.router)
app.include_router(content.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "deadline"}
