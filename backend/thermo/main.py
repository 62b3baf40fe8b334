import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.config import settings
from .core.errors import install_exception_handlers
from .core.logging_setup import configure_logging
from .db.session import init_db, SessionLocal
from .api import auth, devices, readings, thermo
from .services.operators import seed_configured_operators

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    try:
        init_db()
    except Exception:
        logger.exception("Cannot reach the store at startup, refusing to serve")
        raise
    logger.info("Database ready")
    db = SessionLocal()
    try:
        seed_configured_operators(db)
    finally:
        db.close()
    logger.info("CORS origins: %s", ", ".join(settings.cors_origins()))
    yield

app = FastAPI(title="Thermo Relay Cloud API", lifespan=lifespan)

origins = settings.cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"], allow_methods=["*"], allow_headers=["*"],
)
install_exception_handlers(app)

app.include_router(auth.router)
app.include_router(devices.router)
app.include_router(readings.router)
app.include_router(thermo.router)

@app.get("/health")
def health(): return {"ok": True}
