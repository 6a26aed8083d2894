from typing import Optional
from supabase import create_client, Client, ClientOptions
from fooddelivery.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY, DB_TIMEOUT_SECONDS

# SQLSTATE Postgres: violation de contrainte unique (APIError.code)
UNIQUE_VIOLATION = "23505"

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def _options() -> ClientOptions:
    # Aucun appel PostgREST ne doit bloquer indéfiniment
    return ClientOptions(postgrest_client_timeout=DB_TIMEOUT_SECONDS)

def get_supabase() -> Client:
    """
    Client 'anon': vérification des tokens (auth.get_user) et lectures publiques.
    """
    global _supabase
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON, options=_options())
    return _supabase

def get_service_supabase() -> Client:
    """
    Client service-role (bypass RLS): toutes les écritures côté serveur
    (commandes, webhook Stripe, restaurants, avis).
    """
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY, options=_options())
    return _service_supabase
