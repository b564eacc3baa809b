from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.core.config import settings
from app.core.firebase_init import initialize_firebase, get_firebase_status
from app.routers import appliances, cycles, modules, records, validation

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Sterilog API",
    description="Clinic equipment setup, maintenance records and sterilizer cycle counters",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ROUTERS = [
    (modules.router, "Module Catalog"),
    (appliances.router, "Appliances"),
    (records.router, "Records"),
    (cycles.router, "Sterilizer Cycles"),
    (validation.router, "Validation"),
]

for router, description in ROUTERS:
    app.include_router(router)
logger.info(f"Routers mounted: {[d for _, d in ROUTERS]}")


@app.on_event("startup")
async def startup_event():
    # Store-backed endpoints answer 503 until Firebase comes up
    if get_firebase_status()['available']:
        return
    if initialize_firebase():
        logger.info(f"Firebase ready for project {settings.FIREBASE_PROJECT_ID}")
    else:
        logger.warning("Firebase initialization failed - store-backed endpoints will return 503")


@app.get("/")
async def root():
    return {
        "message": "Sterilog API",
        "routers": [d for _, d in ROUTERS],
        "firebase_status": get_firebase_status(),
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "firebase_available": get_firebase_status()['available'],
        "clinic_timezone": settings.CLINIC_TIMEZONE,
    }
