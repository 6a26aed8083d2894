"""
Middlewares transverses de l’application.
- register_basic_middlewares: session, CORS, TrustedHost et confiance en X-Forwarded-*.
- register_security_middleware: en-têtes de sécurité et protection CSRF (double cookie).
- register_no_cache_middleware: aucune mise en cache des réponses /api/v1/*.
Notes:
- Le CSRF ne s’applique qu’aux requêtes mutatives portées par le cookie de session;
  un client Bearer n’est pas concerné.
- Le webhook Stripe est exempté: il est authentifié par sa signature.
"""
import secrets

from fastapi import Request, FastAPI
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from fooddelivery.config import SUPABASE_URL, COOKIE_SECURE, CORS_ORIGINS, ALLOWED_HOSTS, SESSION_SECRET_KEY
from fooddelivery.utils.security import COOKIE_NAME

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_EXEMPT_PATHS = {
    "/api/v1/payments/webhook",
}

def register_basic_middlewares(app: FastAPI) -> None:
    """
    Ajoute les middlewares « de base »:
    - SessionMiddleware, CORSMiddleware, TrustedHostMiddleware
    - ProxyHeadersMiddleware: fait confiance aux en-têtes du proxy (x-forwarded-*).
    """
    app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET_KEY, https_only=COOKIE_SECURE)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=ALLOWED_HOSTS + ["*"] if "*" in CORS_ORIGINS else ALLOWED_HOSTS,
    )
    # Render, Nginx, etc.
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

def register_security_middleware(app: FastAPI) -> None:
    """
    Middleware de sécurité:
    - CSRF: vérifie X-CSRF-Token contre le cookie csrf_token sur requêtes mutatives
      authentifiées par cookie. Exemption: webhook Stripe.
    - En-têtes: X-Frame-Options, X-Content-Type-Options, Referrer-Policy, HSTS (si secure), CSP.
    - Dépose un cookie CSRF si manquant (httponly=False pour que le front lise la valeur).
    """
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        method = request.method.upper()
        has_session = bool(request.cookies.get(COOKIE_NAME))
        is_state_changing = method in ("POST", "PUT", "PATCH", "DELETE")
        is_exempt = request.url.path in CSRF_EXEMPT_PATHS
        csrf_cookie = request.cookies.get(CSRF_COOKIE_NAME)

        if is_state_changing and has_session and not is_exempt:
            header_token = request.headers.get(CSRF_HEADER_NAME, "")
            if not csrf_cookie or not header_token or not secrets.compare_digest(header_token, csrf_cookie):
                return JSONResponse(status_code=403, content={"detail": "CSRF verification failed"})

        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")

        csp_connect = ["'self'"]
        if SUPABASE_URL:
            csp_connect.append(SUPABASE_URL)
        # Swagger UI (/docs) charge ses assets depuis jsdelivr
        docs_cdn = "https://cdn.jsdelivr.net"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
            f"img-src 'self' data: https://fastapi.tiangolo.com; "
            f"style-src 'self' 'unsafe-inline' {docs_cdn}; "
            f"script-src 'self' 'unsafe-inline' {docs_cdn}; "
            f"connect-src {' '.join(csp_connect)}"
        )

        if not csrf_cookie:
            response.set_cookie(
                key=CSRF_COOKIE_NAME,
                value=secrets.token_urlsafe(32),
                httponly=False,
                secure=COOKIE_SECURE,
                samesite="lax",
                max_age=60 * 60,
                path="/",
            )
        return response

def register_no_cache_middleware(app: FastAPI) -> None:
    """Les réponses API (commandes, paiements, admin) ne sont jamais mises en cache."""
    @app.middleware("http")
    async def no_cache_for_api(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            response.headers["Pragma"] = "no-cache"
        return response
