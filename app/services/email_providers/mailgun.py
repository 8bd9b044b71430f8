"""
MailgunProvider: provider para a HTTP API do Mailgun.

POST {base_url}/{domain}/messages com basic auth api:<key> e corpo
form-urlencoded.
"""

import logging
from typing import Optional

import httpx

from app.services.email_providers.base import (
    EmailProvider,
    ProviderType,
    EmailMessage,
    DeliveryResult,
)

logger = logging.getLogger(__name__)

_MAILGUN_API_BASE = "https://api.mailgun.net/v3"


class MailgunProvider(EmailProvider):
    """
    Provider para Mailgun.

    O cliente httpx e injetado (e fechado) por quem monta o provider.
    """

    provider_type = ProviderType.MAILGUN

    def __init__(
        self,
        api_key: str,
        domain: str,
        default_sender: str,
        http_client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        timeout: float = 15.0,
    ):
        self.api_key = api_key
        self.domain = domain
        self.default_sender = default_sender
        self.http_client = http_client
        self.base_url = (base_url or _MAILGUN_API_BASE).rstrip("/")
        self.timeout = timeout

    @property
    def messages_url(self) -> str:
        """URL para envio de mensagens."""
        return f"{self.base_url}/{self.domain}/messages"

    def _build_form(self, message: EmailMessage) -> dict:
        """Monta o corpo form-urlencoded aceito pelo Mailgun."""
        form = {
            "from": message.sender or self.default_sender,
            "to": message.to,
            "subject": message.subject,
        }
        if message.text:
            form["text"] = message.text
        if message.html:
            form["html"] = message.html
        if message.reply_to:
            form["h:Reply-To"] = message.reply_to
        return form

    async def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Envia email via Mailgun.

        Args:
            message: Email a enviar

        Returns:
            DeliveryResult; nunca levanta exception
        """
        try:
            response = await self.http_client.post(
                self.messages_url,
                auth=("api", self.api_key),
                data=self._build_form(message),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"resposta inesperada: {str(data)[:100]}")

            logger.info(
                f"[Mailgun] Envio aceito para {message.to} (id={data.get('id')})"
            )
            return DeliveryResult.ok(data.get("id"), provider=self.provider_type.value)

        except Exception as e:
            error_msg = self._extract_error(e)
            logger.warning(f"[Mailgun] Erro ao enviar para {message.to}: {error_msg}")
            return DeliveryResult.falha(error_msg, provider=self.provider_type.value)

    def _extract_error(self, exc: Exception) -> str:
        """Extrai mensagem de erro de exceções httpx."""
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            try:
                data = exc.response.json()
                msg = data.get("message") if isinstance(data, dict) else None
                return f"Mailgun {status}: {msg or data}"
            except Exception:
                return f"Mailgun {status}: {exc.response.text[:200]}"
        if isinstance(exc, httpx.TimeoutException):
            return "mailgun_timeout"
        if isinstance(exc, httpx.ConnectError):
            return "mailgun_connect_error"
        if isinstance(exc, ValueError):
            return f"mailgun_invalid_response: {exc}"
        return str(exc) or exc.__class__.__name__
