"""
Supabase client initialization.
"""

import logging

from supabase import create_client, Client
from yarl import URL

from intake.config import normalize_supabase_url
from intake.errors import ConfigurationError

logger = logging.getLogger(__name__)


def create_supabase_client(supabase_url: str, supabase_key: str) -> Client:
    """
    Create the Supabase client used for both storage uploads and the record insert.

    Args:
        supabase_url: Supabase project URL
        supabase_key: Supabase anonymous key

    Returns:
        Supabase client instance

    Raises:
        ConfigurationError: if either value is missing or the client cannot be created
    """
    supabase_url = normalize_supabase_url(supabase_url)
    if not supabase_url or not supabase_key:
        raise ConfigurationError("Supabase URL or anonymous key is missing.")

    try:
        supabase: Client = create_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"❌ Error initializing Supabase client: {e}")
        raise ConfigurationError(f"Não foi possível inicializar o cliente Supabase: {e}") from e

    # Ensure storage_url ends with a slash to avoid storage3 warnings.
    storage_url = str(supabase.storage_url)
    if not storage_url.endswith("/"):
        supabase.storage_url = URL(f"{storage_url}/")

    return supabase
