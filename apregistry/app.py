from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles
from apregistry.core.settings import settings
from apregistry.db.database import init_db
from apregistry.routers.access_points import router as access_points_router
from apregistry.routers.geocoding import router as geocoding_router
from apregistry.services.venues import get_venue_classifier

VERSION = "1.0.0"

app = FastAPI(title="WiFi Access Point Registry", version=VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(access_points_router)
app.include_router(geocoding_router)

@app.on_event("startup")
async def _startup() -> None:
    init_db()
    get_venue_classifier()

@app.get("/api/health")
async def health():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
    }

if settings.frontend_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(settings.frontend_dir), html=True), name="frontend")
