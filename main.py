# main.py - Handyman booking API application
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from config import Base, engine, SessionLocal, IS_PRODUCTION, LOG_LEVEL
import tables.users, tables.user_sessions, tables.technicians, tables.services, tables.bookings, tables.payments, tables.reviews
from routes import users, bookings, admin, technicians, reviews, services
from lifecycle.errors import LifecycleError
from lifecycle.pricing import seed_catalog

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

try:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_catalog(db)
    finally:
        db.close()
    DATABASE_CONNECTED = True
    logger.info("✅ Database and tables initialized successfully")
except SQLAlchemyError as e:
    DATABASE_CONNECTED = False
    logger.error(f"❌ Database initialization failed: {e}")

app = FastAPI(
    title="Handyman Booking API",
    version=VERSION,
    description="Booking lifecycle for a home-services marketplace: intake, dispatch, job tracking and reviews",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domains
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    logger.info(f"⚠️ {exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

app.include_router(users.router)
app.include_router(bookings.router)
app.include_router(admin.router)
app.include_router(technicians.router)
app.include_router(reviews.router)
app.include_router(services.router)

@app.get("/", tags=["Root"])
def read_root():
    """
    Welcome endpoint that provides basic API information
    """
    return {
        "message": "Handyman Booking API",
        "version": VERSION,
        "status": "running",
        "database_connected": DATABASE_CONNECTED,
        "production": IS_PRODUCTION,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_schema": "/openapi.json"
        }
    }

@app.get("/health", tags=["Health"])
def health():
    """
    Health check endpoint
    """
    return {
        "status": "healthy",
        "database": "connected" if DATABASE_CONNECTED else "disconnected",
        "production": IS_PRODUCTION,
        "version": VERSION
    }
