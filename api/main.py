# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-10-18
# Description: main.py
# -----------------------------------------------------------------------------
from fastapi import FastAPI

from api.routers import chat, embeddings, health, ingest, search, stats
from utility.logging_utils import configure_root_logging

configure_root_logging()

app = FastAPI(title="Civic RAG API")
app.include_router(health.router)
app.include_router(stats.router)
app.include_router(search.router)
app.include_router(ingest.router)
app.include_router(embeddings.router)
app.include_router(chat.router)
