"""
Dependencias explicitas do worker da fila de emails.

O worker nao usa clientes globais: recebe um EmailQueueDeps montado
uma vez por invocacao. Nos testes, store/provider/clock sao trocados
por fakes sem nenhum patch.
"""
import logging
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

from app.core.config import Settings, get_settings
from app.core.exceptions import ConfigurationError
from app.core.timezone import agora_utc
from app.repositories.email_job import EmailJobRepository
from app.services.email_providers import EmailProvider, get_provider
from app.services.http_client import criar_http_client
from app.services.supabase import get_supabase_client

logger = logging.getLogger(__name__)


@dataclass
class EmailQueueDeps:
    """Colaboradores de uma invocacao do worker."""
    store: EmailJobRepository
    provider: EmailProvider
    settings: Settings
    clock: Callable[[], datetime] = agora_utc
    rng: Optional[random.Random] = None


def verificar_configuracao(settings: Settings) -> None:
    """
    Verifica as configuracoes obrigatorias da fila.

    Raises:
        ConfigurationError: Nomeando a primeira variavel ausente
    """
    for nome, valor in settings.campos_obrigatorios_fila().items():
        if not valor:
            raise ConfigurationError(nome)


@asynccontextmanager
async def email_queue_deps(
    settings: Optional[Settings] = None,
    clock: Callable[[], datetime] = agora_utc,
) -> AsyncIterator[EmailQueueDeps]:
    """
    Monta as dependencias reais (Supabase + Mailgun) de uma invocacao.

    A configuracao e verificada antes de criar qualquer cliente; o
    cliente HTTP e fechado ao sair do contexto.

    Raises:
        ConfigurationError: Se faltar alguma configuracao obrigatoria
    """
    settings = settings or get_settings()
    verificar_configuracao(settings)

    store = EmailJobRepository(get_supabase_client(settings))

    async with criar_http_client(settings.MAILGUN_TIMEOUT_SECONDS) as http_client:
        yield EmailQueueDeps(
            store=store,
            provider=get_provider(settings, http_client),
            settings=settings,
            clock=clock,
        )
