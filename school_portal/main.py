from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.config import settings
from .core.logging import setup_logging
from .core.database import close_db_connections
from .core.cache import cache_manager
from .core.error_handlers import register_exception_handlers
from .core.gate import RoleGateMiddleware

from .routers import (
    auth, health, pages, teachers, students, subjects, classes,
    assignments, grades, timetable, events, attendance, dashboard,
    announcements, exams, messages
)

setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting School Portal")

    await cache_manager.connect()
    if cache_manager.enabled:
        logger.info("Cache initialized")

    yield

    logger.info("Shutting down School Portal")
    await cache_manager.disconnect()
    await close_db_connections()
    logger.info("Shutdown complete")

app = FastAPI(
    title="School Portal",
    description="Role-based school management for admins, teachers and students",
    version=settings.app_version,
    lifespan=lifespan
)

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
    return response

app.add_middleware(RoleGateMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

# Include all routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(pages.router)
app.include_router(teachers.router)
app.include_router(students.router)
app.include_router(subjects.router)
app.include_router(classes.router)
app.include_router(assignments.router)
app.include_router(grades.router)
app.include_router(timetable.router)
app.include_router(events.router)
app.include_router(attendance.router)
app.include_router(dashboard.router)
app.include_router(announcements.router)
app.include_router(exams.router)
app.include_router(messages.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
