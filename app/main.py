# /app/main.py

import asyncio
import logging
from contextlib import asynccontextmanager

# --- Core FastAPI Imports ---
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.logging_config import configure_logging
from .db.database import SessionLocal, init_db

# --- Application-specific Router Imports ---
from .routers import (
    ai_router,
    auth_router,
    book_requests_router,
    books_router,
    chatbot_router,
    dashboard_router,
    extension_requests_router,
    notifications_router,
    transactions_router,
    users_router,
)

# --- Service Imports for Startup Logic ---
from .services import maintenance_service, user_service
from .services.database_service import DatabaseService

configure_logging()
logger = logging.getLogger(__name__)


def _seed_default_users() -> None:
    session = SessionLocal()
    try:
        created = user_service.seed_default_users(DatabaseService(session))
        if created:
            logger.info("Seeded %d default account(s)", created)
    finally:
        session.close()


# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.seed_default_users:
        _seed_default_users()
    maintenance_task = asyncio.create_task(maintenance_service.maintenance_loop())
    try:
        yield
    finally:
        maintenance_task.cancel()
        await asyncio.gather(maintenance_task, return_exceptions=True)


# --- FastAPI Application Instance Creation ---
app = FastAPI(
    title=settings.app_name,
    description="Catalogue, circulation and AI assistance for a school library.",
    version="1.0.0",
    lifespan=lifespan
)

# --- Middleware Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# --- API Router Inclusion ---
app.include_router(auth_router.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users_router.router, prefix="/api", tags=["Users"])
app.include_router(books_router.router, prefix="/api/books", tags=["Books"])
app.include_router(transactions_router.router, prefix="/api/transactions", tags=["Transactions"])
app.include_router(book_requests_router.router, prefix="/api/book-requests", tags=["Book Requests"])
app.include_router(extension_requests_router.router, prefix="/api/extension-requests", tags=["Extension Requests"])
app.include_router(notifications_router.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(chatbot_router.router, prefix="/api/ai-chat", tags=["AI Assistant"])
app.include_router(ai_router.router, prefix="/api/ai", tags=["AI Insights"])
app.include_router(dashboard_router.router, prefix="/api/dashboard", tags=["Dashboard"])


# --- Root / Health Check Endpoint ---
@app.get("/", tags=["Health Check"])
async def read_root():
    """A simple health check endpoint to confirm the API is online."""
    return {"status": "Library API is running!", "version": app.version}
