"""
Interface abstrata para providers de email transacional.

Define o contrato do Delivery Adapter: um envio nunca levanta
exception para o worker, toda falha volta como DeliveryResult.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from enum import Enum


class ProviderType(str, Enum):
    """Tipos de providers suportados."""

    MAILGUN = "mailgun"


@dataclass
class EmailMessage:
    """Email pronto para envio."""

    to: str
    subject: str
    text: Optional[str] = None
    html: Optional[str] = None
    sender: Optional[str] = None
    reply_to: Optional[str] = None


@dataclass
class DeliveryResult:
    """Resultado do envio de email."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    provider: Optional[str] = None

    @classmethod
    def ok(cls, message_id: Optional[str], provider: str) -> "DeliveryResult":
        return cls(success=True, message_id=message_id, provider=provider)

    @classmethod
    def falha(cls, error: str, provider: str) -> "DeliveryResult":
        return cls(success=False, error=error, provider=provider)


class EmailProvider(ABC):
    """
    Interface abstrata para providers de email.

    Implementacoes envolvem uma unica chamada HTTP ao provider e
    normalizam erro de rede, status nao-2xx e resposta malformada
    em DeliveryResult(success=False).
    """

    provider_type: ProviderType

    @abstractmethod
    async def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Envia um email.

        Args:
            message: Email a enviar

        Returns:
            DeliveryResult com status do envio
        """
        pass
