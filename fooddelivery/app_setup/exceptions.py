"""
Gestionnaires d’exceptions utilisés par la factory.
- HTTPException (dont fooddelivery.errors.*): JSON {"detail": ...} avec le code d’origine.
- RequestValidationError: 400 (entrée invalide) au lieu du 422 par défaut.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_as_json(request: Request, exc: HTTPException):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_as_400(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Entrée invalide", "errors": jsonable_encoder(exc.errors())},
        )
