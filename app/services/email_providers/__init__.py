"""
Email Providers - Abstração sobre o provider de envio transacional.

Suporta:
- Mailgun (HTTP API)

Uso:
    from app.services.email_providers import get_provider

    async with criar_http_client() as http_client:
        provider = get_provider(settings, http_client)
        result = await provider.send(EmailMessage(to="a@x.com", subject="Oi", text="..."))
"""

import httpx

from app.core.config import Settings
from app.core.exceptions import ConfigurationError
from app.services.email_providers.base import (
    EmailProvider,
    ProviderType,
    EmailMessage,
    DeliveryResult,
)
from app.services.email_providers.mailgun import MailgunProvider

__all__ = [
    "EmailProvider",
    "ProviderType",
    "EmailMessage",
    "DeliveryResult",
    "MailgunProvider",
    "get_provider",
]


def get_provider(settings: Settings, http_client: httpx.AsyncClient) -> EmailProvider:
    """
    Cria o provider configurado.

    Raises:
        ConfigurationError: Se faltar credencial do Mailgun ou remetente padrao
    """
    if not settings.MAILGUN_API_KEY:
        raise ConfigurationError("MAILGUN_API_KEY")
    if not settings.MAILGUN_DOMAIN:
        raise ConfigurationError("MAILGUN_DOMAIN")
    if not settings.MAIL_FROM:
        raise ConfigurationError("MAIL_FROM")

    return MailgunProvider(
        api_key=settings.MAILGUN_API_KEY,
        domain=settings.MAILGUN_DOMAIN,
        default_sender=settings.MAIL_FROM,
        http_client=http_client,
        base_url=settings.MAILGUN_BASE_URL,
        timeout=settings.MAILGUN_TIMEOUT_SECONDS,
    )
