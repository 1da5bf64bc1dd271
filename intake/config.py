"""
Runtime configuration loaded from environment variables (and .env for local development).

Required:
    - OPENAI_API_KEY: credential for the AI analysis call
    - SUPABASE_URL: Supabase project URL (storage + database)
    - SUPABASE_ANON_KEY: Supabase anonymous key

Missing values fail fast at startup with a single descriptive error.
"""

import os
import logging
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from intake.errors import ConfigurationError

logger = logging.getLogger(__name__)

BUCKET_NAME = "project-images"
TABLE_NAME = "cadastro_obra"
DEFAULT_MODEL = "gpt-4o-mini"

REQUIRED = [
    "OPENAI_API_KEY",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
]


class Settings(BaseModel):
    """Validated settings used to build the app's clients."""
    openai_api_key: str
    openai_model: str = DEFAULT_MODEL
    supabase_url: str
    supabase_anon_key: str
    secret_key: Optional[str] = None
    port: int = 5000


def _load_dotenv() -> None:
    load_dotenv()


def _is_set(key: str) -> bool:
    val = os.environ.get(key)
    return val is not None and str(val).strip() != ""


def normalize_supabase_url(url: Optional[str]) -> Optional[str]:
    """Ensure Supabase URL ends with a trailing slash to satisfy storage client."""
    if not url:
        return None
    return url if url.endswith("/") else f"{url}/"


def missing_variables() -> List[str]:
    """Return the required variable names that are unset or blank."""
    return [key for key in REQUIRED if not _is_set(key)]


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Raises:
        ConfigurationError: if any required variable is missing
    """
    _load_dotenv()

    missing = missing_variables()
    if missing:
        message = (
            "Configuração ausente: defina as variáveis de ambiente "
            + ", ".join(missing)
            + " antes de iniciar a aplicação."
        )
        logger.error(f"❌ {message}")
        raise ConfigurationError(message)

    port = os.environ.get("PORT", os.environ.get("FLASK_PORT", "5000"))
    try:
        port_number = int(port)
    except ValueError:
        raise ConfigurationError(f"Porta inválida: {port}")

    return Settings(
        openai_api_key=os.environ["OPENAI_API_KEY"].strip(),
        openai_model=os.environ.get("OPENAI_MODEL") or DEFAULT_MODEL,
        supabase_url=normalize_supabase_url(os.environ["SUPABASE_URL"].strip()),
        supabase_anon_key=os.environ["SUPABASE_ANON_KEY"].strip(),
        secret_key=os.environ.get("FLASK_SECRET_KEY") or None,
        port=port_number,
    )
