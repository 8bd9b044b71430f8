"""
Exceptions customizadas da fila de emails.
"""
from typing import Optional


class EmailQueueException(Exception):
    """Base exception para todos os erros do sistema."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class DatabaseError(EmailQueueException):
    """Erro de banco de dados (Supabase)."""
    pass


class ConfigurationError(EmailQueueException):
    """
    Erro de configuracao do sistema.

    Fatal para a invocacao inteira: nenhum job e tocado.
    """

    def __init__(self, variavel: str, message: Optional[str] = None):
        self.variavel = variavel
        super().__init__(
            message or f"{variavel} environment variable not set",
            details={"variavel": variavel},
        )
