import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.batch import router as batch_router
from src.api.routes.events import router as events_router
from src.api.routes.extraction import router as extraction_router
from src.batch.persistence import PersistenceGateway
from src.batch.processor import BatchProcessor
from src.batch.session import BatchSession
from src.config import settings
from src.extraction.service import get_extraction_service
from src.extraction.url_resolver import HttpUrlResolver
from src.pipeline_config import BatchConfig
from src.storage.record_store import SupabaseRecordStore

logging.basicConfig(level=settings.log_level.upper())


def build_session(config: BatchConfig | None = None) -> BatchSession:
    """Wire a BatchSession to the configured extraction backend and Supabase."""
    config = config or BatchConfig.from_settings(settings)
    processor = BatchProcessor(
        get_extraction_service(config.extraction_backend),
        max_concurrency=config.max_concurrency,
        timeout=config.extraction_timeout_seconds,
    )
    return BatchSession(
        processor=processor,
        gateway=PersistenceGateway(SupabaseRecordStore()),
        resolver=HttpUrlResolver(),
        config=config,
    )


app = FastAPI(
    title="Event Harvest API",
    description="Batch extraction of event details from URLs into Supabase",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:8501",
    ],
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.session = build_session()

app.include_router(extraction_router)
app.include_router(events_router)
app.include_router(batch_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
