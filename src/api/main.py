import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import install_error_handlers
from src.api.routes.action_items import router as action_items_router
from src.api.routes.extraction import router as extraction_router
from src.api.routes.integrations import router as integrations_router
from src.api.routes.meetings import router as meetings_router
from src.api.routes.publish import router as publish_router
from src.api.routes.transcription import router as transcription_router
from src.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="MeetAct API",
    description="Meeting transcripts to tracked action items",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

app.include_router(extraction_router)
app.include_router(transcription_router)
app.include_router(meetings_router)
app.include_router(action_items_router)
app.include_router(integrations_router)
app.include_router(publish_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
