# fooddelivery.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe), sécurité cookies, CORS/hosts
- Fournit les URLs de retour du checkout et les délais maximum des appels externes
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _float_env(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name, "")) or default)
    except ValueError:
        return default

# Supabase: URL et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Stripe: clé secrète, secret webhook, devise
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or os.getenv("STRIPE_API_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_CURRENCY = _clean_env(os.getenv("STRIPE_CURRENCY") or "gbp").lower()

# URL publique de l'application (callbacks Stripe) et pages de retour du checkout
APP_BASE_URL = _clean_env(os.getenv("APP_BASE_URL") or "http://localhost:8000").rstrip("/")
CHECKOUT_SUCCESS_PATH = os.getenv("CHECKOUT_SUCCESS_PATH", "/checkout/success")
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/checkout/cancel")

# Délais maximum (secondes) des appels externes: base de données et Stripe
DB_TIMEOUT_SECONDS = _float_env("DB_TIMEOUT_SECONDS", 10.0)
STRIPE_TIMEOUT_SECONDS = _float_env("STRIPE_TIMEOUT_SECONDS", 15.0)
