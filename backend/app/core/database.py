from functools import lru_cache

from supabase import create_client, acreate_client, Client, AsyncClient
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger()


def _get_environment_info() -> str:
    """Get human-readable environment information"""
    if "127.0.0.1" in settings.SUPABASE_URL or "localhost" in settings.SUPABASE_URL:
        return "LOCAL"
    elif "supabase.co" in settings.SUPABASE_URL:
        return "CLOUD"
    else:
        return "UNKNOWN"


@lru_cache
def get_supabase() -> Client:
    """Service-role Supabase client shared by the whole process"""
    logger.info(f"Initializing Supabase client for {_get_environment_info()} environment")
    logger.info(f"Supabase URL: {settings.SUPABASE_URL}")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def get_auth_client() -> Client:
    """
    Fresh anon-key client for user-session auth calls.

    Sign-in, refresh and sign-out mutate the session held by the client,
    so these flows must never share the service-role singleton.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)


async def get_realtime_client() -> AsyncClient:
    """Async anon client; realtime channels are only available on the async API"""
    return await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)


async def init_db():
    """Initialize database connection"""
    try:
        # Test connection by fetching a simple query
        get_supabase().table(settings.PROFILES_TABLE).select("id").limit(1).execute()
        logger.info(
            f"Supabase connection established successfully ({_get_environment_info()} environment)"
        )
    except Exception as e:
        logger.error(
            f"Supabase connection failed ({_get_environment_info()} environment): {e}"
        )
        raise
