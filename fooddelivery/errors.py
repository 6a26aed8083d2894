"""
Erreurs métier du service.

Chaque erreur est une HTTPException: le handler applicatif (app_setup.exceptions)
la rend directement en JSON {"detail": ...} avec le bon code HTTP.
Les services lèvent ces erreurs, les vues les laissent remonter.
"""
from typing import Optional
from fastapi import HTTPException


class ServiceError(HTTPException):
    status_code = 500
    default_detail = "Erreur interne"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class InvalidInput(ServiceError):
    status_code = 400
    default_detail = "Requête invalide"


class InvalidSignature(InvalidInput):
    default_detail = "Signature webhook invalide"


class Unauthenticated(ServiceError):
    status_code = 401
    default_detail = "Non authentifié"


class Forbidden(ServiceError):
    status_code = 403
    default_detail = "Accès interdit"


class NotFound(ServiceError):
    status_code = 404
    default_detail = "Ressource introuvable"


class Conflict(ServiceError):
    status_code = 409
    default_detail = "Conflit"


class UpstreamFailure(ServiceError):
    status_code = 502
    default_detail = "Service externe indisponible"
