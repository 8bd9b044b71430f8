"""
Cliente Supabase para operacoes de banco de dados.

Nao ha instancia global: cada invocacao do worker monta o seu cliente
via get_supabase_client() e o entrega ao repository.
"""
import logging
from typing import Optional

from supabase import create_client, Client, ClientOptions

from app.core.config import Settings, get_settings
from app.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def get_supabase_client(settings: Optional[Settings] = None) -> Client:
    """
    Cria cliente Supabase com service key (acesso completo).

    Sessao de auth desligada: o worker nao tem usuario logado.
    Toda chamada PostgREST respeita SUPABASE_TIMEOUT_SECONDS.

    Raises:
        ConfigurationError: Se URL ou service key nao estiverem configuradas
    """
    settings = settings or get_settings()

    if not settings.SUPABASE_URL:
        raise ConfigurationError("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_KEY:
        raise ConfigurationError("SUPABASE_SERVICE_KEY")

    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_KEY,
        options=ClientOptions(
            postgrest_client_timeout=settings.SUPABASE_TIMEOUT_SECONDS,
            auto_refresh_token=False,
            persist_session=False,
        ),
    )
