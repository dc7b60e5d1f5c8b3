from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from .exceptions import PortalException

logger = logging.getLogger(__name__)

async def portal_exception_handler(request: Request, exc: PortalException):
    """Handle custom portal exceptions"""
    if exc.status_code >= 500:
        logger.error(f"Portal error: {exc.message} - Path: {request.url.path}")
    else:
        logger.info(f"{exc.__class__.__name__}: {exc.message} - Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({"error": exc.message, **exc.payload})
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies and query parameters"""
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"error": "Invalid request", "details": exc.errors()})
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )

def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(PortalException, portal_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
