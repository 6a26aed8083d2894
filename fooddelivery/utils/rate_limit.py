from typing import Dict, Any
import hashlib
import logging
import os
import time
from fastapi import Request, Response, HTTPException
from fastapi_limiter.depends import RateLimiter

from fooddelivery.utils.security import COOKIE_NAME

logger = logging.getLogger(__name__)

def _client_key(request: Request) -> str:
    # Priorité: Bearer ou cookie de session (hashé), puis IP
    auth_header = request.headers.get("Authorization", "")
    token = auth_header[7:].strip() if auth_header.startswith("Bearer ") else request.cookies.get(COOKIE_NAME)
    path = request.url.path
    if token:
        h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"user:{h}:{path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{path}"

def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance FastAPI de limitation de débit:
    - Redis via fastapi-limiter si initialisé dans le lifespan.
    - Fallback mémoire si LOCAL_RATE_LIMIT_FALLBACK=1.
    - Aucun effet si app.state.rate_limit_enabled est False.
    """
    async def _dep(request: Request, response: Response):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = _client_key(request)
            store = getattr(request.app.state, "_rl_store", {})
            hits = [t for t in store.get(key, []) if now - t < seconds]
            if len(hits) >= times:
                raise HTTPException(status_code=429, detail="Too Many Requests")
            hits.append(now)
            store[key] = hits
            request.app.state._rl_store = store
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        async def _identifier(req: Request) -> str:
            return _client_key(req)

        try:
            limiter = RateLimiter(times=times, seconds=seconds, identifier=_identifier)
            return await limiter(request, response)
        except HTTPException:
            raise
        except Exception:
            # Redis indisponible: pas de 429, la requête passe
            logger.warning("rate_limit: limiter unavailable for %s", request.url.path)
            return
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    return {
        "enabled": (bool(enabled) if enabled is not None else None),
        "local_fallback": os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1",
    }
