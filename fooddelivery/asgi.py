"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn -k uvicorn.workers.UvicornWorker) importe
  `fooddelivery.asgi:app`. Toute la configuration est centralisée dans fooddelivery.app.
"""

from fooddelivery.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "fooddelivery.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
