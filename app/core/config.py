"""
Configurações da aplicação.
Carrega variáveis de ambiente.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Configurações carregadas do .env"""

    # App
    APP_NAME: str = "Email Queue"
    ENVIRONMENT: str = "development"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    SUPABASE_TIMEOUT_SECONDS: int = 10

    # Mailgun
    MAILGUN_API_KEY: str = ""
    MAILGUN_DOMAIN: str = ""
    MAILGUN_BASE_URL: str = "https://api.mailgun.net/v3"  # EU: https://api.eu.mailgun.net/v3
    MAILGUN_TIMEOUT_SECONDS: float = 15.0

    # Remetente padrao (ex: "Ghoste <no-reply@mg.ghoste.one>")
    MAIL_FROM: str = ""

    # API usada pelo scheduler para disparar os jobs
    EMAIL_QUEUE_API_URL: str = "http://localhost:8000"

    # Fila de emails
    # 0 desativa o reaper de claims presos em 'sending'
    EMAIL_QUEUE_CLAIM_TIMEOUT_MINUTES: int = 15
    # 0.0 = backoff deterministico; 0.2 = ate 20% a mais de espera
    EMAIL_QUEUE_BACKOFF_JITTER: float = 0.0

    def campos_obrigatorios_fila(self) -> dict[str, str]:
        """
        Retorna as configurações exigidas pelo worker da fila de emails.

        A ordem importa: o primeiro campo vazio é o reportado no erro.
        """
        return {
            "SUPABASE_URL": self.SUPABASE_URL,
            "SUPABASE_SERVICE_KEY": self.SUPABASE_SERVICE_KEY,
            "MAILGUN_API_KEY": self.MAILGUN_API_KEY,
            "MAILGUN_DOMAIN": self.MAILGUN_DOMAIN,
            "MAIL_FROM": self.MAIL_FROM,
        }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignora variáveis extras do .env


class EmailQueueConfig:
    """
    Constantes da fila de emails (tabela email_jobs).
    """

    TABLE_NAME: str = "email_jobs"

    # Tamanho do lote por invocacao
    DEFAULT_LIMIT: int = 10
    MAX_LIMIT: int = 25

    # Retry
    MAX_ATTEMPTS: int = 5
    BACKOFF_MINUTES: tuple[int, ...] = (1, 5, 15, 60, 360)

    # Reaper: na N-esima expiracao de claim o job vai para failed
    MAX_REAPS: int = 5

    # Protege a coluna last_error
    LAST_ERROR_MAX_CHARS: int = 400

    # Scheduler
    SCHEDULE: str = "*/2 * * * *"  # A cada 2 minutos


@lru_cache()
def get_settings() -> Settings:
    """Retorna instância cacheada das configurações."""
    return Settings()


settings = get_settings()
