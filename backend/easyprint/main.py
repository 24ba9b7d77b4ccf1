import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlmodel import SQLModel

from easyprint.api import catalog, checkout, dashboard, estimate, messages, orders, upload, validate
from easyprint.db.session import get_engine
from easyprint.services.uploads import MEDIA_ROOT, MEDIA_URL

logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

app = FastAPI(title="EasyPrint Orders")

# CORS for the storefront
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
app.include_router(estimate.router, prefix="/estimate", tags=["estimate"])
app.include_router(validate.router, prefix="/validate", tags=["validate"])
app.include_router(checkout.router, prefix="/checkout", tags=["checkout"])
app.include_router(upload.router, prefix="/upload", tags=["upload"])
app.include_router(orders.router, prefix="/orders", tags=["orders"])
app.include_router(messages.router, prefix="/messages", tags=["messages"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])

app.mount(MEDIA_URL, StaticFiles(directory=MEDIA_ROOT, check_dir=False), name="media")


@app.on_event("startup")
def on_startup():
    SQLModel.metadata.create_all(get_engine())
    Path(MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
    logger.info("EasyPrint orders service started media_root=%s", MEDIA_ROOT)


@app.get("/")
async def root():
    return {"status": "ok", "service": "easyprint-orders"}
